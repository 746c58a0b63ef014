# hostscan/engine.py

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import (
    ACCEPT_WORKERS,
    DEFAULT_PROBE_METHOD,
    DEFAULT_TIMEOUT_MS,
    MAX_SCAN_TARGETS,
    PROBE_METHODS,
)
from .jobs import JobNotFound, JobStore, ScanJob
from .probe import DeviceRecord
from .scanner import HostScanner, ProbeFunc
from .targets import expand_cidr, host_count

logger = logging.getLogger(__name__)


def percent_complete(completed: int, total: int) -> int:
    """Rounded (half up) percentage in [0, 100]. An empty job is 100% done."""
    if total <= 0:
        return 100
    percent = int(100 * completed / total + 0.5)
    return min(100, max(0, percent))


@dataclass
class ScanProgress:
    percent: int
    finished: bool
    records: List[DeviceRecord] = field(default_factory=list)
    total: int = 0
    completed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'percent': self.percent,
            'finished': self.finished,
            'results': [record.to_dict() for record in self.records],
        }


class ScanEngine:
    """
    Starts subnet scans in the background and answers progress queries.

    start() only registers the job and hands it to a small accept pool;
    each scan then fans out on its own bounded pool (see HostScanner), so
    a large scan can't starve new start() calls.
    """

    def __init__(self, store: Optional[JobStore] = None, scanner: Optional[HostScanner] = None,
                 probe: Optional[ProbeFunc] = None, accept_workers: Optional[int] = None,
                 grace_period: Optional[float] = None, max_targets: int = MAX_SCAN_TARGETS):
        self.store = store if store is not None else JobStore()
        if grace_period is not None:
            self.store.grace_period = grace_period

        if scanner is None:
            scanner = HostScanner(probe=probe) if probe is not None else HostScanner()
        self.scanner = scanner
        self.max_targets = max_targets
        self._executor = ThreadPoolExecutor(
            max_workers=accept_workers or ACCEPT_WORKERS,
            thread_name_prefix="scan-accept",
        )
        self._closed = False
        self._lock = threading.Lock()

    def start(self, cidr: str, timeout_ms: int = DEFAULT_TIMEOUT_MS,
              method: str = DEFAULT_PROBE_METHOD) -> str:
        """Registers a scan of `cidr` and returns its job id without waiting for it."""
        if method not in PROBE_METHODS:
            raise ValueError(f"Unknown probe method '{method}'. Expected one of {PROBE_METHODS}.")
        if not timeout_ms or timeout_ms <= 0:
            timeout_ms = DEFAULT_TIMEOUT_MS

        count = host_count(cidr)
        if count > self.max_targets:
            logger.warning("Refusing to scan %s: %d targets exceeds the limit of %d",
                           cidr, count, self.max_targets)
            addresses = []
        else:
            addresses = expand_cidr(cidr)
            if not addresses:
                logger.warning("Nothing to scan for %r (malformed or empty CIDR)", cidr)

        with self._lock:
            if self._closed:
                raise RuntimeError("ScanEngine has been shut down")
            job = self.store.create(len(addresses))

            if not addresses:
                self._finish(job)
                return job.id

            try:
                future = self._executor.submit(self._run, addresses, timeout_ms, method, job)
            except RuntimeError:
                self.store.evict(job.id)
                raise

        logger.info("Starting job %s: %s (%d targets, timeout %dms, %s)",
                    job.id, cidr, len(addresses), timeout_ms, method)
        future.add_done_callback(lambda f: self._on_scan_done(f, job))
        return job.id

    def _on_scan_done(self, future, job: ScanJob) -> None:
        # A scan still queued at shutdown never runs; close its job here
        if future.cancelled():
            self._finish(job)

    def _run(self, addresses: List[str], timeout_ms: int, method: str, job: ScanJob) -> None:
        try:
            self.scanner.scan(addresses, timeout_ms, job, method)
        except Exception:
            logger.exception("Scan for job %s aborted", job.id)
        finally:
            self._finish(job)

    def _finish(self, job: ScanJob) -> None:
        job.mark_finished()
        self.store.schedule_eviction(job.id)

    def get_job(self, job_id: str) -> ScanJob:
        job = self.store.get(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    def progress(self, job_id: str) -> ScanProgress:
        """Current state of a job. Raises JobNotFound for unknown or evicted ids."""
        job = self.get_job(job_id)
        # Read the flag first: unless the engine was shut down mid-scan, a job
        # seen as finished already has all its records
        finished = job.finished
        completed, records = job.snapshot()
        return ScanProgress(
            percent=percent_complete(completed, job.total),
            finished=finished,
            records=records,
            total=job.total,
            completed=completed,
        )

    def shutdown(self, wait: bool = False) -> None:
        """Cancels running scans and pending evictions and stops accepting work."""
        with self._lock:
            self._closed = True
        self.scanner.cancel()
        self._executor.shutdown(wait=wait, cancel_futures=True)
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()
