# hostscan/jobs.py

import logging
import threading
import uuid
from typing import Dict, List, Optional, Tuple

from .config import EVICTION_GRACE_SECONDS
from .probe import DeviceRecord

logger = logging.getLogger(__name__)


class JobNotFound(LookupError):
    """Raised when a job id was never issued or has already been evicted."""

    def __init__(self, job_id: str):
        super().__init__(f"job not found: {job_id}")
        self.job_id = job_id


class ScanJob:
    """
    Progress of one scan. Probe workers call record() concurrently;
    pollers read a consistent view through snapshot().
    """

    def __init__(self, job_id: str, total: int):
        self.id = job_id
        self.total = total
        self._completed = 0
        self._records: List[DeviceRecord] = []
        self._lock = threading.Lock()
        self._finished = threading.Event()

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def record(self, device: DeviceRecord) -> bool:
        """Adds one probe result. Returns False once every target is accounted for."""
        with self._lock:
            if self._completed >= self.total:
                return False
            self._records.append(device)
            self._completed += 1
            return True

    def snapshot(self) -> Tuple[int, List[DeviceRecord]]:
        """Returns (completed, records) taken at the same instant."""
        with self._lock:
            return self._completed, list(self._records)

    def mark_finished(self) -> bool:
        """Sets the finished flag. Returns True only for the call that set it."""
        with self._lock:
            if self._finished.is_set():
                return False
            self._finished.set()
            return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Blocks until the job is finished or the timeout expires."""
        return self._finished.wait(timeout)

    def __repr__(self):
        return f"ScanJob(id={self.id!r}, completed={self.completed}/{self.total}, finished={self.finished})"


class JobStore:
    """
    Registry of scan jobs keyed by id. Finished jobs are evicted by a timer
    after a grace period so pollers can still fetch the final state.
    """

    def __init__(self, grace_period: float = EVICTION_GRACE_SECONDS):
        self.grace_period = grace_period
        self._jobs: Dict[str, ScanJob] = {}
        self._timers: Dict[str, threading.Timer] = {}
        self._lock = threading.Lock()
        self._closed = False

    def create(self, total: int) -> ScanJob:
        job = ScanJob(str(uuid.uuid4()), total)
        with self._lock:
            self._jobs[job.id] = job
        return job

    def get(self, job_id: str) -> Optional[ScanJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def evict(self, job_id: str) -> None:
        with self._lock:
            job = self._jobs.pop(job_id, None)
            timer = self._timers.pop(job_id, None)
        if timer is not None and timer is not threading.current_thread():
            timer.cancel()
        if job is not None:
            logger.debug("Evicted job %s", job_id)

    def schedule_eviction(self, job_id: str, delay: Optional[float] = None) -> None:
        """Evicts the job after `delay` seconds (the store's grace period by default)."""
        delay = self.grace_period if delay is None else delay

        with self._lock:
            if self._closed or job_id not in self._jobs:
                return
            timer = threading.Timer(delay, self.evict, args=(job_id,))
            timer.daemon = True
            previous = self._timers.pop(job_id, None)
            self._timers[job_id] = timer

        if previous is not None:
            previous.cancel()
        timer.start()

    def close(self) -> None:
        """Cancels pending evictions. Jobs already registered stay readable."""
        with self._lock:
            self._closed = True
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def __len__(self):
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id):
        with self._lock:
            return job_id in self._jobs
