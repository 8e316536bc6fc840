"""
Rate limiter for RPC requests
"""
import asyncio
import time


class TokenBucketRateLimiter:
    """
    Token bucket limiting how fast eth_call requests leave the process.

    Shared by every multicall that goes through the same invoker, so
    concurrent multicalls against a free endpoint stay under its quota.
    """

    def __init__(self, rate: float, burst: int = 1):
        """
        Args:
            rate: Requests per second
            burst: Maximum burst size
        """
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")
        self.rate = rate
        self.burst = burst
        self.tokens = float(burst)
        self.last_update = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self, now: float):
        elapsed = now - self.last_update
        if elapsed > 0:
            self.tokens = min(self.burst, self.tokens + elapsed * self.rate)
            self.last_update = now

    async def acquire(self):
        """Wait until a token is available"""
        wait_time = 0.0
        async with self._lock:
            self._refill(time.monotonic())
            if self.tokens < 1:
                wait_time = (1 - self.tokens) / self.rate
            # Reserve a token now; a negative balance queues later callers behind us
            self.tokens -= 1

        if wait_time > 0:
            try:
                await asyncio.sleep(wait_time)
            except asyncio.CancelledError:
                # No request goes out, so hand the reserved token back
                self.tokens += 1
                raise
