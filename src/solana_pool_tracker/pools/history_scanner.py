"""
history_scanner.py

Walk a program's signature history backwards, page by page, keeping the
signatures whose block time falls inside a date window.

Usage:
    scanner = HistoricalScanner(rpc)
    signatures = scanner.scan(RAYDIUM_LP_V4_PROGRAM_ID, parse_date_range("2024-01-01", "2024-01-02"))
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from solana_pool_tracker import constants
from solana_pool_tracker.errors import DateRangeError, HistoricalScanError, RpcError
from solana_pool_tracker.utils.rate_limiter import exponential_backoff_delay

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def contains(self, block_time: Optional[int]) -> bool:
        """Inclusive check of a unix block time."""
        if block_time is None:
            return False
        moment = datetime.fromtimestamp(block_time, tz=timezone.utc)
        return self.start <= moment <= self.end


def parse_date(value: Optional[str], label: str) -> datetime:
    if not value:
        raise DateRangeError(f"Historical analysis requires a {label} date (YYYY-MM-DD)")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise DateRangeError(f"Invalid {label} date {value!r}. Use YYYY-MM-DD") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date_range(start: Optional[str], end: Optional[str]) -> DateRange:
    """
    Build a DateRange from two date strings, treating naive dates as UTC.

    Raises:
        DateRangeError: a bound is missing, unparseable, or start is after end.
    """
    date_range = DateRange(start=parse_date(start, "start"), end=parse_date(end, "end"))
    if date_range.start > date_range.end:
        raise DateRangeError(f"Start date {start} is after end date {end}")
    return date_range


class HistoricalScanner:
    def __init__(self, rpc,
                 page_size: int = constants.SIGNATURE_PAGE_SIZE,
                 request_delay: float = constants.REQUEST_DELAY_SECONDS,
                 max_retries: int = constants.MAX_SCAN_RETRIES,
                 sleep: Callable[[float], None] = time.sleep):
        self.rpc = rpc
        self.page_size = page_size
        self.request_delay = request_delay
        self.max_retries = max_retries
        self.sleep = sleep

    def scan(self, program_id: str, date_range: DateRange) -> List[str]:
        """
        Collect every signature of program_id with a block time inside date_range.

        The walk continues until history runs out or a short page comes back;
        it does not stop early once entries are older than the window.

        Raises:
            HistoricalScanError: a page still failed after max_retries retries.
                Nothing collected so far is returned.
        """
        logger.info(f"Fetching transactions between {date_range.start} and {date_range.end}")

        signatures: List[str] = []
        before: Optional[str] = None
        retry_count = 0

        while True:
            try:
                page = self.rpc.get_signatures_for_address(
                    program_id,
                    limit=self.page_size,
                    before=before,
                    commitment=constants.COMMITMENT_FINALIZED,
                )
            except RpcError as e:
                if retry_count < self.max_retries:
                    retry_count += 1
                    delay = exponential_backoff_delay(retry_count, base_delay=self.request_delay)
                    logger.warning(f"Retry {retry_count}/{self.max_retries} in {delay:.1f}s: {e}")
                    self.sleep(delay)
                    continue
                raise HistoricalScanError(f"Failed after {self.max_retries} retries: {e}") from e

            if not page:
                break

            before = page[-1]["signature"]
            retry_count = 0

            relevant = [entry["signature"] for entry in page if date_range.contains(entry.get("blockTime"))]
            signatures.extend(relevant)
            logger.info(f"Processed batch: {len(relevant)}/{len(page)} relevant")

            if len(page) < self.page_size:
                break

            self.sleep(self.request_delay)

        logger.info(f"Found {len(signatures)} total transactions in date range")
        return signatures
