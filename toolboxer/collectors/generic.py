from __future__ import annotations
import logging
import socket
from typing import List, Optional, Sequence, Tuple

import psutil

from ..errors import PermissionDenied, PlatformUnsupported
from ..models import Family, Protocol, SocketRecord, SocketState
from .base import Collector, protocols_for

logger = logging.getLogger(__name__)

PSUTIL_KINDS = {Protocol.TCP: "tcp", Protocol.UDP: "udp"}


def _endpoint(addr) -> Tuple[Optional[str], Optional[int]]:
    if not addr:
        return None, None
    ip = addr.ip if hasattr(addr, 'ip') else addr[0]
    port = addr.port if hasattr(addr, 'port') else addr[1]
    return ip, port


def to_socket_record(c, protocol: Protocol) -> Optional[SocketRecord]:
    lip, lport = _endpoint(c.laddr)
    if lip is None:
        return None
    rip, rport = _endpoint(c.raddr)
    return SocketRecord(
        protocol=protocol,
        laddr=lip,
        lport=lport,
        raddr=rip,
        rport=rport,
        state=SocketState.parse(c.status) if protocol is Protocol.TCP else SocketState.NONE,
        pid=c.pid or None,
        family=Family.IPV6 if c.family == socket.AF_INET6 else Family.IPV4,
    )


class PsutilCollector(Collector):
    name = "psutil"

    def enumerate_sockets(self, protocol_filter: str = "both") -> Sequence[SocketRecord]:
        records: List[SocketRecord] = []
        for proto in protocols_for(protocol_filter):
            try:
                conns = psutil.net_connections(kind=PSUTIL_KINDS[proto])
            except psutil.AccessDenied as e:
                raise PermissionDenied(f"socket enumeration refused (try running as root): {e}") from e
            except NotImplementedError as e:
                raise PlatformUnsupported(f"psutil cannot list sockets on this host: {e}") from e
            for c in conns:
                rec = to_socket_record(c, proto)
                if rec is not None:
                    records.append(rec)
        logger.debug("psutil: %d sockets (%s)", len(records), protocol_filter)
        return records
