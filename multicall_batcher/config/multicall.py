"""
Reusable multicall configuration
"""
from dataclasses import dataclass
from typing import Any
from web3 import AsyncWeb3, Web3

from multicall_batcher.config.settings import (
    MULTICALL3_ADDRESS, DEFAULT_BATCH_SIZE, DEFAULT_TIMEOUT, DEFAULT_BLOCK
)
from multicall_batcher.core.errors import ConfigurationError


@dataclass(frozen=True)
class MulticallConfig:
    """
    Immutable settings shared by any number of multicalls.

    Attributes:
        web3: Client used to reach the chain
        multicall_address: Multicall3 deployment for the chain,
            see https://www.multicall3.com/deployments
        batch_size: Maximum number of calls per aggregate3 request.
            Bigger batches mean fewer round-trips, up to the node's gas cap
            for eth_call.
        timeout: Seconds allowed for the whole multicall, all chunks included
        block_identifier: Block every chunk is executed against
        partial_results: Keep going after a failed chunk and report what
            succeeded instead of aborting on the first failure
    """
    web3: AsyncWeb3
    multicall_address: str
    batch_size: int
    timeout: float
    block_identifier: Any = DEFAULT_BLOCK
    partial_results: bool = False

    def __post_init__(self):
        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int) or self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be a positive integer, got {self.batch_size!r}")
        if not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout!r}")
        try:
            address = Web3.to_checksum_address(self.multicall_address)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid multicall address {self.multicall_address!r}: {e}") from e
        object.__setattr__(self, "multicall_address", address)

    @classmethod
    def default(
        cls,
        web3: AsyncWeb3,
        multicall_address: str = MULTICALL3_ADDRESS
    ) -> "MulticallConfig":
        """Config with the default batch size (100) and timeout (30s)"""
        return cls(
            web3=web3,
            multicall_address=multicall_address,
            batch_size=DEFAULT_BATCH_SIZE,
            timeout=DEFAULT_TIMEOUT
        )
