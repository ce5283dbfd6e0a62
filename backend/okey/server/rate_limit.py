"""Token bucket limiting how fast one socket may send messages."""

import time


class TokenBucket:
    """Tokens refill at a constant rate up to the burst size.

    consume() takes one token and returns False once the bucket is empty.
    """

    def __init__(self, rate: float, burst: int) -> None:
        self._rate = rate
        self._burst = burst
        self._tokens = float(burst)
        self._last_refill = time.monotonic()

    def consume(self) -> bool:
        now = time.monotonic()
        self._tokens = min(self._burst, self._tokens + (now - self._last_refill) * self._rate)
        self._last_refill = now
        if self._tokens < 1.0:
            return False
        self._tokens -= 1.0
        return True
