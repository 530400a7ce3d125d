from __future__ import annotations
import ipaddress
from typing import Optional, Tuple

WILDCARD_HOSTS = {"*", "0.0.0.0", "::", ""}


def _safe_int(s: str, default: int = 0) -> int:
    try:
        return int(s)
    except ValueError:
        return default


def parse_addr(addr: str) -> Tuple[str, int]:
    """
    Split a textual endpoint as printed by ss/netstat.
    Handles:
      - '1.2.3.4:5678'
      - '[::1]:443', '[fe80::1%eth0]:22'
      - '[::1]%lo:45678' (ss prints the scope after the bracket)
      - '0.0.0.0:*', '*:443', '*:*', '*'
      - '127.0.0.53%lo:53'
    """
    if not addr or addr == '*':
        return ('*', 0)

    if addr.startswith('['):
        host, _, rest = addr[1:].partition(']')
        port = rest.rpartition(':')[2] if ':' in rest else ''
        return (_strip_scope(host) or '::', 0 if port in ('*', '') else _safe_int(port))

    if addr.startswith('*:'):
        _, port = addr.split(':', 1)
        return ('*', 0 if port == '*' else _safe_int(port))

    if ':' in addr:
        host, port = addr.rsplit(':', 1)
        return (_strip_scope(host) or '0.0.0.0', 0 if port in ('*', '') else _safe_int(port))

    return (addr, 0)


def _strip_scope(host: str) -> str:
    return host.split('%', 1)[0]


def is_ipv6(host: str) -> bool:
    return ':' in host


def is_loopback(host: Optional[str]) -> bool:
    if not host:
        return False
    try:
        return ipaddress.ip_address(_strip_scope(host)).is_loopback
    except ValueError:
        return host == "localhost"


def format_endpoint(host: Optional[str], port: Optional[int]) -> str:
    if not host and not port:
        return "*"
    host = host or "*"
    shown = "*" if not port else str(port)
    if is_ipv6(host):
        return f"[{host}]:{shown}"
    return f"{host}:{shown}"
