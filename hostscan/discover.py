# hostscan/discover.py

import logging
import socket
from typing import Optional

from netaddr import IPNetwork

logger = logging.getLogger(__name__)


def local_ip(probe_host: str = "8.8.8.8") -> Optional[str]:
    """
    Finds the address of the interface used for outbound traffic. Connecting a
    UDP socket sends nothing, it only makes the kernel pick a route.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect((probe_host, 80))
            return s.getsockname()[0]
    except OSError as e:
        logger.warning("Could not determine local IP address: %s", e)
        return None


def local_subnet(prefix: int = 24) -> Optional[str]:
    """Returns the local network in CIDR form (e.g., '192.168.1.0/24'), or None."""
    ip = local_ip()
    if not ip:
        return None

    subnet = str(IPNetwork(f"{ip}/{prefix}").cidr)
    logger.info("Local IP: %s, subnet: %s", ip, subnet)
    return subnet
