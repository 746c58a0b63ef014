"""Pytest configuration and shared fixtures."""

import threading
import time

import pytest

from hostscan.engine import ScanEngine
from hostscan.probe import DeviceRecord


def fake_probe(address, timeout_ms, method="auto"):
    """Odd last octets answer; every host has a name."""
    last = int(address.rsplit(".", 1)[1])
    if last % 2:
        return DeviceRecord(address=address, hostname=f"host-{last}.lan", latency_ms=last % 7, reachable=True)
    return DeviceRecord.unreachable(address, f"host-{last}.lan")


class BlockingProbe:
    """Probe that parks every call until release() is called."""

    def __init__(self):
        self.release_event = threading.Event()
        self.started = threading.Semaphore(0)
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, address, timeout_ms, method="auto"):
        with self._lock:
            self.calls.append((address, timeout_ms, method))
        self.started.release()
        self.release_event.wait(5)
        return fake_probe(address, timeout_ms, method)

    def wait_started(self, count, timeout=5):
        for _ in range(count):
            assert self.started.acquire(timeout=timeout)

    def release(self):
        self.release_event.set()


def wait_until(predicate, timeout=5.0, interval=0.01):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def engine():
    engine = ScanEngine(probe=fake_probe)
    yield engine
    engine.shutdown()


@pytest.fixture
def blocking_probe():
    probe = BlockingProbe()
    yield probe
    probe.release()
