import asyncio
from typing import Callable, Optional

import pytest
from eth_abi import decode, encode
from web3 import Web3
from web3.exceptions import ContractLogicError

from multicall_batcher.config.multicall import MulticallConfig
from multicall_batcher.config.settings import MULTICALL3_ADDRESS

AGGREGATE3_SELECTOR = bytes.fromhex("82ad56cb")
NAME_SELECTOR = bytes.fromhex("06fdde03")  # name()

WETH = "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619"
USDT = "0xc2132D05D31c914a87C6611C10748AEb04B58e8F"
WBNB = "0x3BA4c387f786bFEE076A58914F5Bd38d668B42c3"
SOL = "0xd93f7E271cB87c23AaA73edC008A79646d1F9912"
USDC = "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359"

TOKEN_NAMES = {
    WETH: "Wrapped Ether",
    USDT: "(PoS) Tether USD",
    WBNB: "BNB (PoS)",
    SOL: "Wrapped SOL",
    USDC: "USD Coin",
}


class Revert(Exception):
    """Raised by a fake contract to make its call fail on-chain"""


def erc20(name: str) -> Callable[[bytes], bytes]:
    """Fake token that only answers name()"""
    def handle(call_data: bytes) -> bytes:
        if call_data != NAME_SELECTOR:
            raise Revert(b"")
        return encode(["string"], [name])
    return handle


class FakeAggregator:
    """
    In-process stand-in for Multicall3 behind an AsyncWeb3 client.

    eth.call decodes the aggregate3 payload, runs the handler registered
    for each target and encodes the (success, returnData) list. A failing
    call with allowFailure=False reverts the whole request, like the real
    contract.
    """

    def __init__(
        self,
        handlers: Optional[dict[str, Callable[[bytes], bytes]]] = None,
        delay: float = 0.0,
        raw_response: Optional[bytes] = None,
        error: Optional[Exception] = None
    ):
        self.handlers = {
            Web3.to_checksum_address(k): v for k, v in (handlers or {}).items()
        }
        self.delay = delay
        self.raw_response = raw_response
        self.error = error
        self.chunk_sizes: list[int] = []
        self.block_identifiers: list = []
        self.eth = self

    async def call(self, transaction: dict, block_identifier=None) -> bytes:
        assert transaction["to"] == MULTICALL3_ADDRESS
        data = bytes.fromhex(transaction["data"][2:])
        assert data[:4] == AGGREGATE3_SELECTOR

        (calls,) = decode(["(address,bool,bytes)[]"], data[4:])
        self.chunk_sizes.append(len(calls))
        self.block_identifiers.append(block_identifier)

        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.raw_response is not None:
            return self.raw_response

        results = []
        for target, allow_failure, call_data in calls:
            handler = self.handlers.get(Web3.to_checksum_address(target))
            try:
                if handler is None:
                    raise Revert(b"")
                results.append((True, handler(call_data)))
            except Revert as e:
                if not allow_failure:
                    raise ContractLogicError("execution reverted: Multicall3: call failed")
                results.append((False, e.args[0]))
        return encode(["(bool,bytes)[]"], [results])


@pytest.fixture
def aggregator() -> FakeAggregator:
    return FakeAggregator({address: erc20(name) for address, name in TOKEN_NAMES.items()})


@pytest.fixture
def make_config(aggregator):
    def _make(batch_size: int = 100, timeout: float = 30.0, **kwargs) -> MulticallConfig:
        return MulticallConfig(
            web3=kwargs.pop("web3", aggregator),
            multicall_address=MULTICALL3_ADDRESS,
            batch_size=batch_size,
            timeout=timeout,
            **kwargs
        )
    return _make
