"""
CMDB URL Guard
==============

Server-side request forgery checks for URLs built from, or returned by, the
CMDB. A URL is accepted only when it stays on the configured CMDB origin and
does not point at loopback, private or otherwise internal address space.
"""

import ipaddress
from typing import Iterable, Optional
from urllib.parse import urlsplit

ALLOWED_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}
# Characters that must never reach a rendered link
UNSAFE_URL_CHARACTERS = frozenset("<>\"'`\\ \t\r\n")


def is_internal_address(address: str) -> bool:
    """True for loopback, private, link-local, reserved, multicast or unspecified IPs."""
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return (
        ip.is_loopback
        or ip.is_private
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    )


def is_internal_hostname(host: str) -> bool:
    host = host.lower().rstrip(".")
    return host == "localhost" or host.endswith(".localhost") or is_internal_address(host)


def _effective_port(scheme: str, port: Optional[int]) -> Optional[int]:
    return port if port is not None else DEFAULT_PORTS.get(scheme)


def is_valid_cmdb_url(
    url: Optional[str],
    base_url: Optional[str],
    allow_private_hosts: bool = False
) -> bool:
    """
    Check that ``url`` may be fetched from (or shown as a link to) the CMDB.

    Rules:
    - scheme is http or https, no embedded credentials
    - same host and port as ``base_url``, and the URL lies under it
    - host is not localhost and not an internal IP literal, unless
      ``allow_private_hosts`` is set
    """
    if not url or not base_url:
        return False
    if any(ch in UNSAFE_URL_CHARACTERS for ch in url.strip()):
        return False

    try:
        parts = urlsplit(url.strip())
        base = urlsplit(base_url.strip())
        port = _effective_port(parts.scheme, parts.port)
        base_port = _effective_port(base.scheme, base.port)
    except ValueError:
        return False

    if parts.scheme not in ALLOWED_SCHEMES or base.scheme not in ALLOWED_SCHEMES:
        return False
    if parts.username or parts.password:
        return False

    host = (parts.hostname or "").lower()
    if not host or host != (base.hostname or "").lower() or port != base_port:
        return False

    prefix = base_url.strip().rstrip("/")
    candidate = url.strip()
    if candidate != prefix and not candidate.startswith(prefix + "/"):
        return False

    if not allow_private_hosts and is_internal_hostname(host):
        return False

    return True


def all_addresses_public(addresses: Iterable[str]) -> bool:
    """True when every resolved address is public; False for an empty set."""
    addresses = list(addresses)
    return bool(addresses) and not any(is_internal_address(a) for a in addresses)
