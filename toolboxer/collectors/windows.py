from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from ..models import Family, Protocol, SocketRecord, SocketState
from ..utils.net import WILDCARD_HOSTS, is_ipv6, parse_addr
from .base import Collector, protocols_for

logger = logging.getLogger(__name__)

NETSTAT_ARGV = ["netstat", "-ano"]


def parse_netstat_line(line: str) -> Optional[SocketRecord]:
    """One row of `netstat -ano`. TCP rows have 5 columns, UDP rows 4 (no state)."""
    parts = line.split()
    if not parts or parts[0].upper() not in ("TCP", "UDP"):
        return None
    proto = Protocol(parts[0].upper())
    if proto is Protocol.TCP:
        if len(parts) < 5:
            return None
        local, remote, state_s, pid_s = parts[1], parts[2], parts[3], parts[4]
    else:
        if len(parts) < 4:
            return None
        local, remote, state_s, pid_s = parts[1], parts[2], None, parts[3]

    lhost, lport = parse_addr(local)
    rhost, rport = parse_addr(remote)
    if rport == 0 and rhost in WILDCARD_HOSTS:
        rhost, rport = None, None
    try:
        pid = int(pid_s) or None
    except ValueError:
        pid = None

    return SocketRecord(
        protocol=proto,
        laddr=lhost,
        lport=lport,
        raddr=rhost,
        rport=rport,
        state=SocketState.parse(state_s) if proto is Protocol.TCP else SocketState.NONE,
        pid=pid,
        family=Family.IPV6 if is_ipv6(lhost) else Family.IPV4,
    )


def parse_netstat(output: str) -> List[SocketRecord]:
    records: List[SocketRecord] = []
    for line in output.splitlines():
        rec = parse_netstat_line(line)
        if rec is not None:
            records.append(rec)
    return records


class NetstatCollector(Collector):
    name = "netstat"

    def enumerate_sockets(self, protocol_filter: str = "both") -> Sequence[SocketRecord]:
        wanted = protocols_for(protocol_filter)
        records = [r for r in parse_netstat(self.run_tool(NETSTAT_ARGV)) if r.protocol in wanted]
        logger.debug("netstat: %d sockets (%s)", len(records), protocol_filter)
        return records
