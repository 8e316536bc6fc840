"""
Multicall error taxonomy

Every error raised while aggregating a call list derives from
MulticallError and records which chunk it came from. A call that fails
on-chain with allow_failure=True is not an error: it shows up as a
CallResult with success=False.
"""
from typing import Optional


class MulticallError(Exception):
    """Base class for failures that abort a multicall"""

    def __init__(
        self,
        message: str,
        chunk_index: Optional[int] = None,
        start: Optional[int] = None
    ):
        super().__init__(message)
        self.chunk_index = chunk_index
        self.start = start


class EncodeError(MulticallError):
    """A chunk could not be packed into an aggregate3 call"""


class RemoteCallError(MulticallError):
    """The eth_call to the aggregator failed or reverted"""


class DeadlineExceededError(RemoteCallError):
    """The shared deadline ran out before a chunk completed"""


class DecodeError(MulticallError):
    """The aggregator response did not parse into the expected results"""


class PartialResultsError(MulticallError):
    """
    Raised in partial mode when one or more chunks failed.

    results holds a CallResult for every call of a successful chunk and
    None for every call of a failed one. errors lists the chunk errors in
    chunk order.
    """

    def __init__(self, results: list, errors: list[MulticallError]):
        failed = ", ".join(str(e.chunk_index) for e in errors)
        super().__init__(f"{len(errors)} chunk(s) failed: [{failed}]")
        self.results = results
        self.errors = errors


class ConfigurationError(ValueError):
    """Invalid multicall configuration"""
