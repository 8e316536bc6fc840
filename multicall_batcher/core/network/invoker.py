"""
Remote invoker: one eth_call against the aggregator under a shared deadline
"""
import asyncio
import time
from typing import Any, Optional
from web3 import AsyncWeb3, Web3

from multicall_batcher.utils.rate_limiter import TokenBucketRateLimiter
from multicall_batcher.utils.logger import get_logger

logger = get_logger(__name__)


class RequestTimeoutError(Exception):
    """The RPC client gave up on a request before the shared deadline did"""


class Deadline:
    """Time budget measured on the monotonic clock, never reset"""

    def __init__(self, timeout: float):
        self.timeout = timeout
        self.expires_at = time.monotonic() + timeout

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())


class RemoteInvoker:
    """
    Adapter over the web3 client used to reach the aggregator.

    The web3 instance must be safe to share between concurrent coroutines;
    AsyncWeb3 over AsyncHTTPProvider is.
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        rate_limiter: Optional[TokenBucketRateLimiter] = None
    ):
        self.web3 = web3
        self.rate_limiter = rate_limiter

    async def invoke(
        self,
        deadline: Deadline,
        address: str,
        payload: bytes,
        block_identifier: Any = "latest"
    ) -> bytes:
        """
        Execute eth_call(to=address, data=payload) and return the raw bytes.

        Raises asyncio.TimeoutError only when the shared deadline elapses,
        before or during the call. A timeout raised by the client itself
        comes out as RequestTimeoutError. Any other client error propagates
        unchanged.
        """
        remaining = deadline.remaining()
        if remaining <= 0:
            raise asyncio.TimeoutError(f"deadline of {deadline.timeout}s already elapsed")

        async def execute_call():
            if self.rate_limiter is not None:
                await self.rate_limiter.acquire()
            try:
                return await self.web3.eth.call(
                    {"to": address, "data": Web3.to_hex(payload)},
                    block_identifier
                )
            except asyncio.TimeoutError as e:
                raise RequestTimeoutError(f"eth_call to {address} timed out: {e!r}") from e

        start_time = time.monotonic()
        raw = await asyncio.wait_for(execute_call(), timeout=remaining)
        logger.debug(
            f"eth_call to {address} ({len(payload)} bytes) "
            f"took {(time.monotonic() - start_time) * 1000:.0f}ms"
        )
        return bytes(raw)
