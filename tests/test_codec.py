import threading
import time

import pytest
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from web3 import Web3

from multicall_batcher.core.network import multicall
from multicall_batcher.core.network.multicall import (
    Call, CallResult, MulticallCodec, get_multicall_codec, load_multicall_abi
)
from conftest import AGGREGATE3_SELECTOR, NAME_SELECTOR, WETH, USDC


@pytest.fixture
def codec() -> MulticallCodec:
    return get_multicall_codec()


def test_codec_is_loaded_once():
    assert get_multicall_codec() is get_multicall_codec()


def test_concurrent_first_use_loads_abi_once(monkeypatch):
    loads = []

    def slow_load():
        loads.append(1)
        time.sleep(0.05)
        return load_multicall_abi()

    monkeypatch.setattr(multicall, "_codec", None)
    monkeypatch.setattr(multicall, "load_multicall_abi", slow_load)

    barrier = threading.Barrier(8)
    codecs = []

    def first_use():
        barrier.wait()
        codecs.append(get_multicall_codec())

    threads = [threading.Thread(target=first_use) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(loads) == 1
    assert len(codecs) == 8
    assert all(c is codecs[0] for c in codecs)


def test_aggregate3_signature_and_selector(codec):
    assert codec.signature == "aggregate3((address,bool,bytes)[])"
    assert codec.selector == AGGREGATE3_SELECTOR
    assert codec.output_types == ["(bool,bytes)[]"]


def test_encode_keeps_call_order(codec):
    calls = [
        Call(WETH.lower(), False, NAME_SELECTOR),
        Call(USDC, True, b"\xde\xad\xbe\xef"),
    ]

    payload = codec.encode(calls)

    assert payload[:4] == AGGREGATE3_SELECTOR
    (triples,) = decode(["(address,bool,bytes)[]"], payload[4:])
    # eth-abi returns checksummed or lowercase addresses depending on version
    assert [(Web3.to_checksum_address(t), f, d) for t, f, d in triples] == [
        (WETH, False, NAME_SELECTOR),
        (USDC, True, b"\xde\xad\xbe\xef"),
    ]


def test_encode_rejects_non_bytes_payload(codec):
    with pytest.raises(EncodingError):
        codec.encode([Call(WETH, True, "0x06fdde03")])


def test_encode_rejects_bad_address(codec):
    with pytest.raises(ValueError):
        codec.encode([Call("not-an-address", True, NAME_SELECTOR)])


def test_decode_failed_call_has_empty_data(codec):
    name = encode(["string"], ["Wrapped Ether"])
    revert = bytes.fromhex("08c379a0") + encode(["string"], ["nope"])
    raw = encode(["(bool,bytes)[]"], [[(True, name), (False, revert)]])

    results = codec.decode(raw)

    assert results == [
        CallResult(success=True, data=name),
        CallResult(success=False, data=b"", revert_data=revert),
    ]


def test_decode_truncated_response(codec):
    raw = encode(["(bool,bytes)[]"], [[(True, b"\x01" * 64)]])
    with pytest.raises(DecodingError):
        codec.decode(raw[:-40])


def test_missing_function_in_abi():
    abi = [entry for entry in load_multicall_abi() if entry["name"] != "aggregate3"]
    with pytest.raises(ValueError):
        MulticallCodec(abi)
