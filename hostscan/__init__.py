"""Background discovery of live hosts on a local IPv4 subnet."""

from .engine import ScanEngine, ScanProgress
from .jobs import JobNotFound, JobStore, ScanJob
from .probe import DeviceRecord, probe_host
from .scanner import HostScanner
from .targets import expand_cidr, host_count

__version__ = "0.1.0"

__all__ = [
    "DeviceRecord",
    "HostScanner",
    "JobNotFound",
    "JobStore",
    "ScanEngine",
    "ScanJob",
    "ScanProgress",
    "expand_cidr",
    "host_count",
    "probe_host",
]
