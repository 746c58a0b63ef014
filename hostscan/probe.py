# hostscan/probe.py

import logging
import socket
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from scapy.all import ICMP, IP, sr1

from .config import (
    DEFAULT_PROBE_METHOD,
    PROBE_METHODS,
    TCP_PROBE_PORTS,
    UNKNOWN_HOSTNAME,
)

logger = logging.getLogger(__name__)

ICMP_ECHO_REPLY = 0


@dataclass(frozen=True)
class DeviceRecord:
    """Outcome of probing a single address."""

    address: str
    hostname: str = UNKNOWN_HOSTNAME
    latency_ms: int = -1
    reachable: bool = False

    @classmethod
    def unreachable(cls, address: str, hostname: str = UNKNOWN_HOSTNAME) -> "DeviceRecord":
        return cls(address=address, hostname=hostname, latency_ms=-1, reachable=False)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["ip"] = data.pop("address")
        return data


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


def icmp_ping(address: str, timeout: float) -> Optional[int]:
    """
    Sends one ICMP echo request and waits up to `timeout` seconds for the reply.
    Returns the round-trip time in milliseconds, or None if nothing answered.

    Raises PermissionError/OSError when raw sockets are not available.
    """
    start = time.perf_counter()
    resp = sr1(IP(dst=address) / ICMP(), timeout=timeout, verbose=False)

    if resp is None or not resp.haslayer(ICMP):
        return None
    if resp[ICMP].type != ICMP_ECHO_REPLY:
        return None
    return _elapsed_ms(start)


def tcp_ping(address: str, timeout: float, ports=TCP_PROBE_PORTS) -> Optional[int]:
    """
    Infers reachability from TCP connection attempts to a few common ports.
    The timeout is split evenly across the ports. An accepted or refused
    connection means the host answered.
    """
    per_port = timeout / max(1, len(ports))

    for port in ports:
        start = time.perf_counter()
        try:
            with socket.create_connection((address, port), timeout=per_port):
                return _elapsed_ms(start)
        except ConnectionRefusedError:
            return _elapsed_ms(start)
        except socket.timeout:
            continue
        except OSError as e:
            # EHOSTUNREACH and friends: nobody is home, other ports won't help
            logger.debug("TCP probe of %s:%s failed: %s", address, port, e)
            return None
    return None


def resolve_hostname(address: str) -> str:
    """Reverse DNS lookup; falls back to the 'unknown' sentinel."""
    try:
        hostname, _, _ = socket.gethostbyaddr(address)
    except (OSError, UnicodeError):
        return UNKNOWN_HOSTNAME

    hostname = (hostname or "").strip()
    if not hostname or hostname.lower() == address.lower():
        return UNKNOWN_HOSTNAME
    return hostname


def check_reachable(address: str, timeout_ms: int, method: str = DEFAULT_PROBE_METHOD) -> Optional[int]:
    """Returns latency in milliseconds if the host answered, otherwise None."""
    if method not in PROBE_METHODS:
        raise ValueError(f"Unknown probe method '{method}'. Expected one of {PROBE_METHODS}.")

    timeout = timeout_ms / 1000.0

    if method in ("auto", "icmp"):
        try:
            return icmp_ping(address, timeout)
        except OSError as e:
            # PermissionError is an OSError: no raw-socket privilege
            if method == "icmp":
                raise
            logger.debug("ICMP unavailable for %s (%s), using TCP connect", address, e)

    return tcp_ping(address, timeout)


def probe_host(address: str, timeout_ms: int, method: str = DEFAULT_PROBE_METHOD) -> DeviceRecord:
    """
    Probes one address for reachability and latency, then resolves its hostname.
    Never raises: every failure is folded into the returned record.
    """
    try:
        latency = check_reachable(address, timeout_ms, method)
    except Exception as e:
        logger.debug("Reachability check failed for %s: %s", address, e)
        latency = None

    # Name lookup runs whether or not the host answered
    hostname = resolve_hostname(address)

    if latency is None:
        return DeviceRecord.unreachable(address, hostname)
    return DeviceRecord(address=address, hostname=hostname, latency_ms=max(0, latency), reachable=True)
