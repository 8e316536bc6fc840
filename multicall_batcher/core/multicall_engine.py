"""
Multicall Aggregation Engine
Runs an arbitrary number of read calls through Multicall3 aggregate3,
one eth_call per chunk, and returns one result per call in input order.
"""
import asyncio
import math
import time
from typing import Optional, Sequence

import aiohttp
from eth_abi.exceptions import DecodingError, EncodingError
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError

from multicall_batcher.config.multicall import MulticallConfig
from multicall_batcher.config.settings import (
    MULTICALL3_ADDRESS, DEFAULT_BATCH_SIZE, DEFAULT_TIMEOUT
)
from multicall_batcher.core.batching import Chunk, iter_chunks
from multicall_batcher.core.errors import (
    MulticallError, EncodeError, RemoteCallError, DeadlineExceededError,
    DecodeError, PartialResultsError
)
from multicall_batcher.core.network.invoker import Deadline, RemoteInvoker, RequestTimeoutError
from multicall_batcher.core.network.multicall import (
    Call, CallResult, MulticallCodec, get_multicall_codec
)
from multicall_batcher.utils.rate_limiter import TokenBucketRateLimiter
from multicall_batcher.utils.logger import get_logger

logger = get_logger(__name__)


class MulticallEngine:
    """
    Splits calls into chunks of config.batch_size and aggregates each chunk
    with a single eth_call. Chunks run one after another and share one
    deadline of config.timeout seconds.

    By default the first failing chunk aborts the whole multicall and its
    error is raised; no partial list is returned. With
    config.partial_results the remaining chunks still run and a
    PartialResultsError carries whatever succeeded.
    """

    def __init__(
        self,
        config: MulticallConfig,
        codec: Optional[MulticallCodec] = None,
        invoker: Optional[RemoteInvoker] = None
    ):
        self.config = config
        self.codec = codec or get_multicall_codec()
        self.invoker = invoker or RemoteInvoker(config.web3)

    async def execute(self, calls: Sequence[Call]) -> list[CallResult]:
        """
        Execute calls through Multicall3.

        Returns a list with exactly one CallResult per call, at the same
        index. A call that failed with allow_failure=True is reported as
        CallResult(success=False, data=b"").

        Raises:
            EncodeError, RemoteCallError, DeadlineExceededError, DecodeError:
                a chunk failed (default mode)
            PartialResultsError: one or more chunks failed (partial mode)
        """
        calls = list(calls)
        if not calls:
            return []

        deadline = Deadline(self.config.timeout)
        results: list[Optional[CallResult]] = [None] * len(calls)
        errors: list[MulticallError] = []
        start_time = time.monotonic()

        for chunk in iter_chunks(len(calls), self.config.batch_size):
            try:
                chunk_results = await self._execute_chunk(deadline, calls, chunk)
            except MulticallError as e:
                logger.warning(
                    f"Multicall chunk {chunk.index} [{chunk.start}:{chunk.end}) failed: {e}"
                )
                if not self.config.partial_results:
                    raise
                errors.append(e)
                continue

            results[chunk.start:chunk.end] = chunk_results

        if errors:
            raise PartialResultsError(results, errors)

        logger.debug(
            f"Multicall of {len(calls)} calls in "
            f"{math.ceil(len(calls) / self.config.batch_size)} chunk(s) "
            f"took {(time.monotonic() - start_time) * 1000:.0f}ms"
        )
        return results

    async def _execute_chunk(
        self,
        deadline: Deadline,
        calls: list[Call],
        chunk: Chunk
    ) -> list[CallResult]:
        """Encode, invoke and decode one chunk"""
        batch = calls[chunk.start:chunk.end]

        try:
            payload = self.codec.encode(batch)
        except (EncodingError, ValueError, TypeError) as e:
            raise EncodeError(
                f"failed to pack multicall {chunk.start}: {e}", chunk.index, chunk.start
            ) from e

        try:
            raw = await self.invoker.invoke(
                deadline,
                self.config.multicall_address,
                payload,
                self.config.block_identifier
            )
        except ContractLogicError as e:
            # aggregate3 reverts when a call with allow_failure=False fails
            raise RemoteCallError(
                f"multicall {chunk.start} reverted: {e}", chunk.index, chunk.start
            ) from e
        except aiohttp.ClientError as e:
            raise RemoteCallError(
                f"network error executing multicall {chunk.start}: {e}", chunk.index, chunk.start
            ) from e
        except RequestTimeoutError as e:
            # The client's own request timeout, not the shared budget
            raise RemoteCallError(
                f"request timed out executing multicall {chunk.start}: {e}", chunk.index, chunk.start
            ) from e
        except asyncio.TimeoutError as e:
            raise DeadlineExceededError(
                f"deadline of {deadline.timeout}s exceeded at multicall {chunk.start}",
                chunk.index,
                chunk.start
            ) from e
        except Exception as e:
            raise RemoteCallError(
                f"failed to execute multicall {chunk.start}: {e}", chunk.index, chunk.start
            ) from e

        try:
            decoded = self.codec.decode(raw)
        except (DecodingError, ValueError, TypeError, OverflowError) as e:
            raise DecodeError(
                f"failed to unpack multicall {chunk.start}: {e}", chunk.index, chunk.start
            ) from e

        if len(decoded) != chunk.size:
            raise DecodeError(
                f"multicall {chunk.start} returned {len(decoded)} results for {chunk.size} calls",
                chunk.index,
                chunk.start
            )

        logger.debug(f"Multicall chunk {chunk.index} [{chunk.start}:{chunk.end}) ok")
        return decoded


async def multicall_raw(
    config: MulticallConfig,
    calls: Sequence[Call],
    codec: Optional[MulticallCodec] = None
) -> list[CallResult]:
    """Execute calls through Multicall3 with the given config"""
    return await MulticallEngine(config, codec=codec).execute(calls)


class Multicall:
    """
    Convenience wrapper bound to one web3 client.

    Example:
        multicall = Multicall(web3)
        results = await multicall.aggregate([Call(token, True, name_calldata)])
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        address: str = MULTICALL3_ADDRESS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        rate_limiter: Optional[TokenBucketRateLimiter] = None
    ):
        self.web3 = web3
        self.config = MulticallConfig(
            web3=web3,
            multicall_address=address,
            batch_size=batch_size,
            timeout=timeout
        )
        self.engine = MulticallEngine(
            self.config,
            invoker=RemoteInvoker(web3, rate_limiter)
        )

    async def aggregate(self, calls: Sequence[Call]) -> list[CallResult]:
        """Execute multiple calls with as few RPC requests as the batch size allows"""
        return await self.engine.execute(calls)
