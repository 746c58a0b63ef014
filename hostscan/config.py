# hostscan/config.py
import os

# --- PROBE CONFIGURATION ---
# Default per-host probe timeout in milliseconds (LAN latencies)
DEFAULT_TIMEOUT_MS = 300

# Reachability methods accepted by probe_host / ScanEngine.start
PROBE_METHODS = ("auto", "icmp", "tcp")
DEFAULT_PROBE_METHOD = "auto"

# Ports tried by the TCP-connect fallback. A refused connection still proves the host is up.
TCP_PROBE_PORTS = (80, 443, 22)

# Hostname reported when reverse DNS yields nothing useful
UNKNOWN_HOSTNAME = "unknown"

# --- CONCURRENCY ---
# Per-job probe workers are clamped to this range
MIN_SCAN_WORKERS = 8
MAX_SCAN_WORKERS = 64

# Workers accepting start() requests, separate from the per-job pools
ACCEPT_WORKERS = max(4, os.cpu_count() or 1)

# --- JOB LIFECYCLE ---
# Seconds a finished job stays queryable before eviction
EVICTION_GRACE_SECONDS = 30.0

# Larger expansions are treated as "nothing to scan" (a /16)
MAX_SCAN_TARGETS = 65536

# --- LOGGING ---
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# --- COLOR MAP (for CLI output in main.py) ---
COLOR_MAP = {
    "UP": "\033[92m",       # Green
    "DOWN": "\033[90m",     # Grey
    "INFO": "\033[96m",     # Cyan
    "WARNING": "\033[93m",  # Yellow
    "ERROR": "\033[91m",    # Red
    "ENDC": "\033[0m",      # Reset (end color code)
}
