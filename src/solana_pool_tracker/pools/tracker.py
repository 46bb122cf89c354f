"""
tracker.py

Discover new pools and keep sampling their liquidity.

Live mode:
    log notifications -> bounded signature queue -> worker threads resolving
    mints -> one immediate sample per pool -> one resample thread per pool.

Historical mode:
    signature history scan -> resolve -> exactly one sample per pool.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from solana_pool_tracker import constants
from solana_pool_tracker.errors import InvalidTokenIdentity
from solana_pool_tracker.pools.history_scanner import DateRange, HistoricalScanner
from solana_pool_tracker.pools.liquidity import LiquidityReader, LiquiditySnapshot
from solana_pool_tracker.pools.pool_keys import PoolIdentity, derive_pool_identity
from solana_pool_tracker.pools.tx_resolver import TransactionResolver

logger = logging.getLogger(__name__)

PoolDiscoveredCallback = Callable[[str, Tuple[str, str]], None]
SnapshotCallback = Callable[[PoolIdentity, LiquiditySnapshot], None]


@dataclass
class TrackedPool:
    identity: PoolIdentity
    tracked_at: float = field(default_factory=time.monotonic)
    stop_event: threading.Event = field(default_factory=threading.Event)
    thread: Optional[threading.Thread] = None
    samples_taken: int = 0
    missed_samples: int = 0
    last_snapshot: Optional[LiquiditySnapshot] = None
    # held for the whole of a sample so samples of one pool never overlap
    sample_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def cancel(self) -> None:
        self.stop_event.set()


class PoolTracker:
    def __init__(self, rpc, subscriber=None,
                 program_id: str = constants.RAYDIUM_LP_V4_PROGRAM_ID,
                 marker: str = constants.RAYDIUM_INIT_LOG,
                 resample_interval: float = constants.RESAMPLE_INTERVAL_SECONDS,
                 max_tracked_pools: int = constants.MAX_TRACKED_POOLS,
                 max_missed_samples: int = constants.MAX_MISSED_SAMPLES,
                 event_queue_size: int = constants.EVENT_QUEUE_SIZE,
                 worker_count: int = constants.WORKER_COUNT,
                 historical_sample_delay: float = constants.HISTORICAL_SAMPLE_DELAY_SECONDS,
                 heartbeat_interval: float = constants.HEARTBEAT_INTERVAL_SECONDS,
                 on_snapshot: Optional[SnapshotCallback] = None,
                 resolver: Optional[TransactionResolver] = None,
                 reader: Optional[LiquidityReader] = None,
                 scanner: Optional[HistoricalScanner] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.rpc = rpc
        self.subscriber = subscriber
        self.program_id = program_id
        self.marker = marker
        self.resample_interval = resample_interval
        self.max_tracked_pools = max_tracked_pools
        self.max_missed_samples = max_missed_samples
        self.worker_count = worker_count
        self.historical_sample_delay = historical_sample_delay
        self.heartbeat_interval = heartbeat_interval
        self.on_snapshot = on_snapshot
        self.sleep = sleep

        self.resolver = resolver or TransactionResolver(rpc, program_id)
        self.reader = reader or LiquidityReader(rpc)
        self.scanner = scanner or HistoricalScanner(rpc)

        self.events: "queue.Queue[str]" = queue.Queue(maxsize=event_queue_size)
        self.dropped_events = 0
        self._pools: Dict[PoolIdentity, TrackedPool] = {}
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._workers: List[threading.Thread] = []

    # Sampling

    def sample(self, identity: PoolIdentity) -> Optional[LiquiditySnapshot]:
        """
        Take one best-effort liquidity sample. Never raises.
        """
        try:
            snapshot = self.reader.fetch(identity.pool_address)
        except Exception:
            logger.exception(f"Error tracking liquidity for pool {identity.pool_address}")
            return None

        if snapshot is None:
            logger.info(f"No liquidity data for pool {identity.pool_address}")
            return None

        if self.on_snapshot is not None:
            try:
                self.on_snapshot(identity, snapshot)
            except Exception:
                logger.exception(f"Snapshot callback failed for pool {identity.pool_address}")
        return snapshot

    def _sample_tracked(self, pool: TrackedPool) -> Optional[LiquiditySnapshot]:
        with pool.sample_lock:
            snapshot = self.sample(pool.identity)
            pool.samples_taken += 1
            if snapshot is None:
                pool.missed_samples += 1
            else:
                pool.missed_samples = 0
                pool.last_snapshot = snapshot
            return snapshot

    def _resample_loop(self, pool: TrackedPool) -> None:
        while not pool.stop_event.wait(self.resample_interval):
            self._sample_tracked(pool)
            if pool.stop_event.is_set():
                return
            if pool.missed_samples >= self.max_missed_samples:
                logger.info(
                    f"Pool {pool.identity.pool_address} returned no data "
                    f"{pool.missed_samples} times in a row, no longer tracking"
                )
                self._untrack_if(pool)
                return

    # Registry

    def track(self, token_a: str, token_b: str) -> Optional[PoolIdentity]:
        """
        Sample a pool now and keep resampling it every resample_interval.

        Tracking the same pair again takes a fresh sample, once any in-flight
        resample of it has finished, without starting a second resample thread.
        """
        try:
            identity = derive_pool_identity(token_a, token_b, self.program_id)
        except InvalidTokenIdentity as e:
            logger.warning(f"Cannot derive pool for {token_a} / {token_b}: {e}")
            return None

        with self._lock:
            existing = self._pools.get(identity)
            if existing is None:
                evicted = self._evict_oldest_locked() if len(self._pools) >= self.max_tracked_pools else None
                pool = TrackedPool(identity)
                self._pools[identity] = pool
            else:
                evicted = None
                pool = existing

        if evicted is not None:
            logger.info(f"Tracking limit {self.max_tracked_pools} reached, evicted {evicted.identity.pool_address}")

        self._sample_tracked(pool)

        if existing is None and not pool.stop_event.is_set():
            pool.thread = threading.Thread(
                target=self._resample_loop,
                args=(pool,),
                name=f"resample-{identity.pool_address[:8]}",
                daemon=True,
            )
            pool.thread.start()
            logger.info(f"Tracking pool {identity.pool_address} every {self.resample_interval}s")
        return identity

    def _evict_oldest_locked(self) -> Optional[TrackedPool]:
        if not self._pools:
            return None
        oldest = min(self._pools.values(), key=lambda p: p.tracked_at)
        del self._pools[oldest.identity]
        oldest.cancel()
        return oldest

    def untrack(self, identity: PoolIdentity) -> bool:
        with self._lock:
            pool = self._pools.pop(identity, None)
        if pool is None:
            return False
        pool.cancel()
        return True

    def _untrack_if(self, pool: TrackedPool) -> bool:
        """Remove pool only if the registry still holds this exact entry."""
        with self._lock:
            owned = self._pools.get(pool.identity) is pool
            if owned:
                del self._pools[pool.identity]
        pool.cancel()
        return owned

    def tracked_pools(self) -> List[PoolIdentity]:
        with self._lock:
            return list(self._pools)

    def get_tracked_pool(self, identity: PoolIdentity) -> Optional[TrackedPool]:
        with self._lock:
            return self._pools.get(identity)

    # Live mode

    def enqueue_signature(self, signature: str) -> None:
        """
        Hand a signature to the workers. When the queue is full the oldest
        pending signature is dropped.
        """
        while True:
            try:
                self.events.put_nowait(signature)
                return
            except queue.Full:
                try:
                    dropped = self.events.get_nowait()
                except queue.Empty:
                    continue
                self.dropped_events += 1
                logger.warning(f"Event queue full, dropped {dropped}")

    def process_signature(self, signature: str,
                          on_pool_discovered: Optional[PoolDiscoveredCallback] = None) -> Optional[PoolIdentity]:
        logger.info(f"Processing transaction: {signature}")
        mints = self.resolver.resolve(signature)
        if mints is None:
            return None

        if on_pool_discovered is not None:
            try:
                on_pool_discovered(signature, mints)
            except Exception:
                logger.exception(f"Pool discovered callback failed for {signature}")

        return self.track(*mints)

    def _worker(self, on_pool_discovered: Optional[PoolDiscoveredCallback]) -> None:
        while not self._stopped.is_set():
            try:
                signature = self.events.get(timeout=1)
            except queue.Empty:
                continue
            try:
                self.process_signature(signature, on_pool_discovered)
            except Exception:
                logger.exception(f"Error processing transaction {signature}")
            finally:
                self.events.task_done()

    def start_live(self, on_pool_discovered: Optional[PoolDiscoveredCallback] = None) -> None:
        """Start the workers and the log subscription without blocking."""
        if self.subscriber is None:
            raise ValueError("Live monitoring needs a log subscriber")
        self._stopped.clear()
        for i in range(self.worker_count):
            worker = threading.Thread(
                target=self._worker, args=(on_pool_discovered,), name=f"pool-worker-{i}", daemon=True
            )
            worker.start()
            self._workers.append(worker)
        self.subscriber.subscribe(self.program_id, self.marker, self.enqueue_signature)

    def run_live(self, on_pool_discovered: Optional[PoolDiscoveredCallback] = None) -> None:
        """
        Monitor for new pools until stop() is called.
        """
        logger.info("Starting real-time Raydium LP monitoring...")
        self.start_live(on_pool_discovered)
        while not self._stopped.wait(self.heartbeat_interval):
            logger.info(
                f"Monitoring active | tracked pools: {len(self.tracked_pools())} "
                f"| queued events: {self.events.qsize()}"
            )

    def stop(self) -> None:
        self._stopped.set()
        if self.subscriber is not None:
            self.subscriber.stop()
        with self._lock:
            pools = list(self._pools.values())
            self._pools.clear()
        for pool in pools:
            pool.cancel()
        for worker in self._workers:
            worker.join(timeout=2)
        self._workers.clear()

    # Historical mode

    def run_historical(self, date_range: DateRange) -> List[Tuple[PoolIdentity, Optional[LiquiditySnapshot]]]:
        """
        Scan the date window and sample every pool found there exactly once.

        Raises:
            HistoricalScanError: the signature scan gave up.
        """
        signatures = self.scanner.scan(self.program_id, date_range)
        logger.info(f"Found {len(signatures)} historical transactions")

        results = []
        for index, signature in enumerate(signatures, start=1):
            logger.info(f"Processing {index}/{len(signatures)}: {signature}")
            mints = self.resolver.resolve(signature)
            if mints is None:
                continue
            try:
                identity = derive_pool_identity(mints[0], mints[1], self.program_id)
            except InvalidTokenIdentity as e:
                logger.warning(f"Cannot derive pool for {signature}: {e}")
                continue
            results.append((identity, self.sample(identity)))
            self.sleep(self.historical_sample_delay)
        return results
