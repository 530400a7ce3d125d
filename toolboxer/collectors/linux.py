from __future__ import annotations
import logging
import re
from typing import List, Optional, Sequence

from ..models import Family, Protocol, SocketRecord, SocketState
from ..utils.net import WILDCARD_HOSTS, is_ipv6, parse_addr
from .base import Collector, protocols_for

logger = logging.getLogger(__name__)

SS_RE = re.compile(
    r"^(?P<netid>tcp|udp)\s+(?P<state>\S+)\s+\d+\s+\d+\s+"
    r"(?P<laddr>\S+)\s+(?P<raddr>\S+)(?:\s+(?P<rest>.*))?$")
PID_RE = re.compile(r"pid=(?P<pid>\d+)")

# Netid column is only printed when several socket types are requested
SS_ARGV = ["ss", "-tuanpH"]


def parse_ss_line(line: str) -> Optional[SocketRecord]:
    m = SS_RE.match(line.strip())
    if not m:
        return None
    proto = Protocol.TCP if m.group("netid") == "tcp" else Protocol.UDP
    lhost, lport = parse_addr(m.group("laddr"))
    rhost, rport = parse_addr(m.group("raddr"))
    if rport == 0 and rhost in WILDCARD_HOSTS:
        rhost, rport = None, None

    # several processes may share the socket; the first listed owns it
    mpid = PID_RE.search(m.group("rest") or "")
    pid = int(mpid.group("pid")) if mpid else None

    state = SocketState.parse(m.group("state")) if proto is Protocol.TCP else SocketState.NONE
    return SocketRecord(
        protocol=proto,
        laddr=lhost,
        lport=lport,
        raddr=rhost,
        rport=rport,
        state=state,
        pid=pid,
        family=Family.IPV6 if is_ipv6(lhost) else Family.IPV4,
    )


def parse_ss(output: str) -> List[SocketRecord]:
    records: List[SocketRecord] = []
    for line in output.splitlines():
        rec = parse_ss_line(line)
        if rec is not None:
            records.append(rec)
    return records


class SsCollector(Collector):
    """iproute2 `ss`; pid= appears only for sockets the caller may inspect."""

    name = "ss"

    def enumerate_sockets(self, protocol_filter: str = "both") -> Sequence[SocketRecord]:
        wanted = protocols_for(protocol_filter)
        records = [r for r in parse_ss(self.run_tool(SS_ARGV)) if r.protocol in wanted]
        logger.debug("ss: %d sockets (%s)", len(records), protocol_filter)
        return records
