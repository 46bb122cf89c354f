import time
import random
from threading import Lock


class RateLimiter:
    """
    Token bucket rate limiter for API requests.

    Shared by every thread that talks to the RPC endpoint, so acquire() is
    guarded by a lock.

    Attributes:
        max_requests: Maximum number of requests allowed per time window
        time_window: Time window in seconds (typically 1.0 for per-second limiting)
        tokens: Current number of available tokens
        last_update: Timestamp of last token update
    """

    def __init__(self, max_requests: int, time_window: float = 1.0):
        self.max_requests = max_requests
        self.time_window = time_window
        self.tokens = float(max_requests)
        self.last_update = time.monotonic()
        self.lock = Lock()

    def _refill(self, now: float) -> float:
        time_passed = now - self.last_update
        return min(
            self.max_requests,
            self.tokens + time_passed * (self.max_requests / self.time_window)
        )

    def acquire(self) -> None:
        """
        Acquire a token for making a request.

        Blocks if no tokens are available.
        """
        with self.lock:
            now = time.monotonic()
            self.tokens = self._refill(now)
            self.last_update = now

            if self.tokens < 1:
                sleep_time = (1 - self.tokens) * (self.time_window / self.max_requests)
                time.sleep(sleep_time)
                self.tokens = 0
                self.last_update = time.monotonic()
            else:
                self.tokens -= 1


def exponential_backoff_delay(retries: int, base_delay: float = 1.0, max_delay: float | None = None) -> float:
    """
    Delay for the given retry: base_delay * (2 ^ retries), optionally capped.
    """
    delay = base_delay * (2 ** retries)
    if max_delay is not None:
        delay = min(delay, max_delay)
    return delay


def exponential_backoff_sleep(retries: int, base_delay: float = 1.0, max_delay: float = 60.0, jitter: bool = True) -> None:
    """
    Sleep with exponential backoff for retry mechanisms.

    Args:
        retries: Number of retries attempted (0-based)
        base_delay: Base delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)
        jitter: Whether to add random jitter of +/-25% (default: True)
    """
    delay = exponential_backoff_delay(retries, base_delay, max_delay)

    if jitter:
        jitter_range = delay * 0.25
        delay += random.uniform(-jitter_range, jitter_range)
        delay = max(0.1, delay)

    time.sleep(delay)


def create_rate_limiter(requests_per_second: int) -> RateLimiter:
    return RateLimiter(max_requests=requests_per_second, time_window=1.0)
