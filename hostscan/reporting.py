# hostscan/reporting.py

from datetime import datetime
from typing import Any, Dict, Iterable, List

from netaddr import IPAddress

from .config import COLOR_MAP, UNKNOWN_HOSTNAME
from .probe import DeviceRecord


def print_result(ip, latency_ms, hostname, status, message=""):
    """Prints a formatted host line or system message to the console (used by main.py)."""
    color = COLOR_MAP.get(status.upper(), COLOR_MAP["INFO"])
    endc = COLOR_MAP["ENDC"]

    latency_str = f"{latency_ms:>5}ms" if latency_ms is not None and latency_ms >= 0 else "     --"
    hostname_str = f"{hostname:<32}" if hostname else " " * 32

    output = f"{color}[{ip:<15}] {latency_str} {hostname_str} {status.upper():<7}"
    if message:
        output += f" | {message}"
    print(output + endc)


def progress_bar(percent: int, width: int = 40) -> str:
    """Renders e.g. '[##########----------]  50%'."""
    percent = min(100, max(0, percent))
    filled = int(width * percent / 100)
    return f"[{'#' * filled}{'-' * (width - filled)}] {percent:>3}%"


def sort_records(records: Iterable[DeviceRecord]) -> List[DeviceRecord]:
    """Probe results arrive in completion order; this sorts them numerically by address."""
    return sorted(records, key=lambda record: IPAddress(record.address))


def create_report_data(cidr: str, records: Iterable[DeviceRecord]) -> Dict[str, Any]:
    """
    Assembles scan results into a single, structured dictionary.
    """
    records = sort_records(records)
    reachable = [record for record in records if record.reachable]
    latencies = [record.latency_ms for record in reachable]

    summary = {
        'timestamp': datetime.now().isoformat(),
        'subnet': cidr,
        'hosts_scanned': len(records),
        'hosts_up': len(reachable),
        'named_hosts': sum(1 for record in records if record.hostname != UNKNOWN_HOSTNAME),
        'avg_latency_ms': round(sum(latencies) / len(latencies), 1) if latencies else None,
    }

    return {
        'summary': summary,
        'hosts': [record.to_dict() for record in records],
    }
