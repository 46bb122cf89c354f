"""
errors.py

Exception hierarchy for the pool tracker.
"""


class PoolTrackerError(Exception):
    """Base class for all tracker errors."""


class RpcError(PoolTrackerError):
    """A JSON-RPC call failed at the transport or returned an error object."""

    def __init__(self, method: str, message: str):
        super().__init__(f"{method}: {message}")
        self.method = method


class RateLimitedError(RpcError):
    """The RPC endpoint answered with HTTP 429."""


class ConnectionUnhealthyError(PoolTrackerError):
    """The RPC endpoint did not pass its startup health check."""


class HistoricalScanError(PoolTrackerError):
    """The signature history scan gave up after exhausting its retries."""


class InvalidTokenIdentity(PoolTrackerError, ValueError):
    """A mint or program id is not a valid 32-byte base-58 public key."""


class DateRangeError(PoolTrackerError, ValueError):
    """Historical mode was given missing or unparseable date bounds."""
