from __future__ import annotations
import logging
from typing import Iterable, List, Mapping

from ..models import OwnedSocket, ProcessRecord, Resolution, SocketRecord

logger = logging.getLogger(__name__)


def resolve_owner(sock: SocketRecord, directory: Mapping[int, ProcessRecord]) -> OwnedSocket:
    if sock.pid is None:
        return OwnedSocket(socket=sock, resolution=Resolution.UNKNOWN)
    proc = directory.get(sock.pid)
    if proc is None:
        # exited between the two queries, or hidden from us
        logger.debug("pid %d owns %s:%d but is not in the process table",
                     sock.pid, sock.laddr, sock.lport)
        return OwnedSocket(socket=sock, resolution=Resolution.PID_ONLY)
    return OwnedSocket(socket=sock, resolution=Resolution.RESOLVED, owner=proc)


def correlate(sockets: Iterable[SocketRecord],
              directory: Mapping[int, ProcessRecord]) -> List[OwnedSocket]:
    """Join sockets to their owning processes. Order is kept and nothing is dropped."""
    return [resolve_owner(s, directory) for s in sockets]
