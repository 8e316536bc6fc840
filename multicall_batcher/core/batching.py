"""
Splits a call list into consecutive chunks of bounded size
"""
from typing import Iterator, NamedTuple


class Chunk(NamedTuple):
    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


def iter_chunks(total: int, batch_size: int) -> Iterator[Chunk]:
    """
    Yield contiguous [start, end) ranges covering [0, total) in order.

    Every range holds at most batch_size items; only the last one may be
    shorter. Nothing is yielded for total == 0.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    if total < 0:
        raise ValueError(f"total must be >= 0, got {total}")

    for index, start in enumerate(range(0, total, batch_size)):
        yield Chunk(index, start, min(start + batch_size, total))
