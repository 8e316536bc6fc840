"""
Multicall3 calling convention
Packs a list of calls into an aggregate3 request and unpacks the response.
Contract Address (most chains): 0xcA11bde05977b3631167028862bE2a173976CA11
"""
import json
import threading
from pathlib import Path
from typing import NamedTuple, Optional, Sequence
from web3 import Web3
from eth_abi import decode, encode

MULTICALL3_ABI_PATH = Path(__file__).with_name("multicall3_abi.json")


class Call(NamedTuple):
    target: str
    allow_failure: bool
    call_data: bytes  # already ABI-encoded for the target contract


class CallResult(NamedTuple):
    success: bool
    data: bytes  # empty when success is False
    revert_data: bytes = b""


def _abi_type(param: dict) -> str:
    """Canonical type string of an ABI parameter, expanding tuples"""
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(_abi_type(c) for c in param["components"])
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


class MulticallCodec:
    """
    Encoder/decoder for one Multicall3 entry point (aggregate3 by default).

    Instances are read-only after construction and can be shared freely.
    """

    def __init__(self, abi: list[dict], fn_name: str = "aggregate3"):
        fn_abi = next(
            (
                entry for entry in abi
                if entry.get("type") == "function" and entry.get("name") == fn_name
            ),
            None
        )
        if fn_abi is None:
            raise ValueError(f"Function {fn_name} not found in Multicall ABI")

        self.fn_name = fn_name
        self.input_types = [_abi_type(p) for p in fn_abi["inputs"]]
        self.output_types = [_abi_type(p) for p in fn_abi["outputs"]]
        self.signature = f"{fn_name}({','.join(self.input_types)})"
        self.selector = bytes(Web3.keccak(text=self.signature)[:4])

    def encode(self, calls: Sequence[Call]) -> bytes:
        """Build calldata for aggregate3 with one (target, allowFailure, callData) per call"""
        call_structs = [
            (
                Web3.to_checksum_address(call.target),
                call.allow_failure,
                call.call_data
            )
            for call in calls
        ]
        return self.selector + encode(self.input_types, [call_structs])

    def decode(self, raw: bytes) -> list[CallResult]:
        """Parse the aggregate3 return data, keeping call order"""
        (results,) = decode(self.output_types, raw)
        return [
            CallResult(True, bytes(return_data)) if success
            else CallResult(False, b"", bytes(return_data))
            for success, return_data in results
        ]


def load_multicall_abi(path: Path = MULTICALL3_ABI_PATH) -> list[dict]:
    """Read the bundled Multicall3 ABI"""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


_codec: Optional[MulticallCodec] = None
_codec_lock = threading.Lock()


def get_multicall_codec() -> MulticallCodec:
    """Get the process-wide aggregate3 codec, loading the ABI on first use"""
    global _codec
    if _codec is None:
        with _codec_lock:
            if _codec is None:
                _codec = MulticallCodec(load_multicall_abi())
    return _codec
