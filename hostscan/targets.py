# hostscan/targets.py

import re
from typing import List, Optional, Tuple

from netaddr import IPAddress, IPNetwork

CIDR_PATTERN = re.compile(r"^([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})/([0-9]{1,2})$")


def _parse_cidr(cidr: Optional[str]) -> Optional[Tuple[str, int]]:
    """
    Validates an 'A.B.C.D/P' string and returns (canonical_base, prefix),
    or None when the string is not a valid IPv4 CIDR.
    """
    if not isinstance(cidr, str):
        return None

    match = CIDR_PATTERN.match(cidr.strip())
    if not match:
        return None

    octets = [int(part) for part in match.groups()[:4]]
    prefix = int(match.group(5))
    if any(octet > 255 for octet in octets) or prefix > 32:
        return None

    # Rebuild the base so leading zeros are read as decimal, not octal
    return ".".join(str(octet) for octet in octets), prefix


def _host_bounds(cidr: Optional[str]) -> Optional[Tuple[int, int]]:
    parsed = _parse_cidr(cidr)
    if parsed is None:
        return None

    base, prefix = parsed
    network = IPNetwork(f"{base}/{prefix}")
    first, last = network.first, network.last

    # /31 and /32 keep the whole (degenerate) range
    if prefix <= 30:
        first, last = first + 1, last - 1
    return first, last


def host_count(cidr: Optional[str]) -> int:
    """Number of addresses expand_cidr() would return, without building them."""
    bounds = _host_bounds(cidr)
    if bounds is None:
        return 0
    first, last = bounds
    return last - first + 1


def expand_cidr(cidr: Optional[str]) -> List[str]:
    """
    Expands an IPv4 CIDR (e.g., 192.168.1.0/24) into its usable host addresses,
    in ascending order. Network and broadcast addresses are excluded for
    prefixes up to /30.

    Malformed input yields an empty list; callers treat that as "nothing to scan".
    """
    bounds = _host_bounds(cidr)
    if bounds is None:
        return []

    first, last = bounds
    return [str(IPAddress(value)) for value in range(first, last + 1)]
