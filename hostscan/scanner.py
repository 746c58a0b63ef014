# hostscan/scanner.py

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Set

from .config import DEFAULT_PROBE_METHOD, MAX_SCAN_WORKERS, MIN_SCAN_WORKERS
from .jobs import ScanJob
from .probe import DeviceRecord, probe_host

logger = logging.getLogger(__name__)

ProbeFunc = Callable[[str, int, str], DeviceRecord]


def scan_concurrency(cpu_count: Optional[int] = None) -> int:
    """Workers per scan: twice the CPU count, clamped to [8, 64]."""
    cpus = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
    return min(MAX_SCAN_WORKERS, max(MIN_SCAN_WORKERS, 2 * cpus))


class _Countdown:
    """Fires once `count` futures are done, cancelled ones included."""

    def __init__(self, count: int):
        self._remaining = count
        self._lock = threading.Lock()
        self._event = threading.Event()
        if count <= 0:
            self._event.set()

    def done(self, _future: Future) -> None:
        with self._lock:
            self._remaining -= 1
            if self._remaining <= 0:
                self._event.set()

    def wait(self) -> None:
        self._event.wait()


class HostScanner:
    """
    Runs probes over a list of addresses on a bounded, per-scan thread pool
    and streams every result into the job.
    """

    def __init__(self, probe: ProbeFunc = probe_host, max_workers: Optional[int] = None):
        """Initializes the scanner with the probe to run and its concurrency cap."""
        self.probe = probe
        self.max_workers = max_workers or scan_concurrency()
        self._active: Set[ThreadPoolExecutor] = set()
        self._lock = threading.Lock()
        self._cancelled = False

    def _probe_one(self, address: str, timeout_ms: int, method: str, job: ScanJob) -> None:
        """Probes a single address. Failures become an unreachable record."""
        try:
            device = self.probe(address, timeout_ms, method)
        except Exception as e:
            logger.debug("Probe of %s raised %s: %s", address, type(e).__name__, e)
            device = DeviceRecord.unreachable(address)
        job.record(device)

    def _submit_all(self, executor: ThreadPoolExecutor, addresses: List[str], timeout_ms: int,
                    method: str, job: ScanJob) -> List[Future]:
        futures = []
        for address in addresses:
            try:
                futures.append(executor.submit(self._probe_one, address, timeout_ms, method, job))
            except RuntimeError:
                # Executor was shut down by cancel() while we were submitting
                break
        return futures

    def scan(self, addresses: Iterable[str], timeout_ms: int, job: ScanJob,
             method: str = DEFAULT_PROBE_METHOD) -> ScanJob:
        """
        Probes every address and blocks until all of them completed or the
        scanner was cancelled. The job is marked finished in every case.
        """
        addresses = list(addresses)
        workers = min(self.max_workers, max(1, len(addresses)))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"scan-{job.id[:8]}")

        try:
            with self._lock:
                if self._cancelled:
                    return job
                self._active.add(executor)

            logger.info("Scanning %d targets for job %s (%d workers)", len(addresses), job.id, workers)

            futures = self._submit_all(executor, addresses, timeout_ms, method, job)
            countdown = _Countdown(len(futures))
            for future in futures:
                future.add_done_callback(countdown.done)
            countdown.wait()

            for future in futures:
                if not future.cancelled() and future.exception() is not None:
                    logger.warning("Probe worker for job %s failed: %s", job.id, future.exception())
        finally:
            with self._lock:
                self._active.discard(executor)
            executor.shutdown(wait=False, cancel_futures=True)
            if job.mark_finished():
                logger.info("Job %s finished: %d/%d targets probed", job.id, job.completed, job.total)

        return job

    def cancel(self) -> None:
        """Stops every running scan. Queued probes are dropped, running ones finish."""
        with self._lock:
            self._cancelled = True
            executors = list(self._active)
        for executor in executors:
            executor.shutdown(wait=False, cancel_futures=True)
