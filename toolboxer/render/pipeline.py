from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_DEPTH, PortownConfig
from ..models import OwnedSocket, ProcessRecord, Protocol, Resolution, SocketState
from ..utils.net import is_loopback

UNKNOWN_BUCKET = "unknown/system"
REDACTED = "<redacted>"


@dataclass(frozen=True)
class FilterOptions:
    protocol: str = "both"
    state_filter: str = "all"
    depth: int = DEFAULT_DEPTH
    sort: str = "by_port"
    remote: str = "show"
    port: Optional[int] = None
    pid: Optional[int] = None

    @classmethod
    def from_config(cls, cfg: PortownConfig, port: Optional[int] = None,
                    pid: Optional[int] = None) -> "FilterOptions":
        return cls(protocol=cfg.protocol, state_filter=cfg.state_filter, depth=cfg.depth,
                   sort=cfg.sort, remote=cfg.remote, port=port, pid=pid)


def _protocol_ok(o: OwnedSocket, protocol: str) -> bool:
    if protocol == "tcp":
        return o.socket.protocol is Protocol.TCP
    if protocol == "udp":
        return o.socket.protocol is Protocol.UDP
    return True


def is_listening(o: OwnedSocket) -> bool:
    s = o.socket
    if s.state is SocketState.LISTEN:
        return True
    # an unconnected UDP socket is the datagram equivalent of a listener
    return s.protocol is Protocol.UDP and s.state is SocketState.NONE and not s.has_remote


def _state_ok(o: OwnedSocket, state_filter: str) -> bool:
    if state_filter == "listening_only":
        return is_listening(o)
    if state_filter == "established_only":
        return o.socket.state is SocketState.ESTABLISHED
    return True


def select(owned: Iterable[OwnedSocket], options: FilterOptions) -> Tuple[OwnedSocket, ...]:
    """Subset of owned matching options; records themselves are untouched."""
    return tuple(
        o for o in owned
        if _protocol_ok(o, options.protocol)
        and _state_ok(o, options.state_filter)
        and (options.port is None or o.socket.lport == options.port)
        and (options.pid is None or o.pid == options.pid)
    )


def socket_sort_key(o: OwnedSocket):
    s = o.socket
    return (s.lport, s.laddr, s.protocol.value, s.raddr or "", s.rport or 0,
            s.state.value, -1 if s.pid is None else s.pid)


@dataclass(frozen=True)
class Group:
    owner: Optional[ProcessRecord]  # None for the unknown/system bucket
    sockets: Tuple[OwnedSocket, ...]

    @property
    def title(self) -> str:
        if self.owner is None:
            return UNKNOWN_BUCKET
        return f"{self.owner.name or '?'} (PID {self.owner.pid})"


def _group_key(g: Group, sort: str):
    pid = g.owner.pid
    # sockets are already ordered, the first one carries the lowest port and address
    first = (g.sockets[0].socket.lport, g.sockets[0].socket.laddr)
    if sort == "by_pid":
        return (pid,) + first
    if sort == "by_process_name":
        return ((g.owner.name or "").casefold(),) + first + (pid,)
    return first + (pid,)


def group_by_owner(owned: Sequence[OwnedSocket], sort: str = "by_port") -> List[Group]:
    """Resolved owners in sort order, then one trailing bucket for everything unresolved."""
    by_pid: dict = {}
    unknown: List[OwnedSocket] = []
    for o in owned:
        if o.resolution is Resolution.RESOLVED and o.owner is not None:
            by_pid.setdefault(o.owner.pid, (o.owner, []))[1].append(o)
        else:
            unknown.append(o)

    groups = [Group(owner=proc, sockets=tuple(sorted(socks, key=socket_sort_key)))
              for proc, socks in by_pid.values()]
    groups.sort(key=lambda g: _group_key(g, sort))
    if unknown:
        groups.append(Group(owner=None, sockets=tuple(sorted(unknown, key=socket_sort_key))))
    return groups


def shown_remote(o: OwnedSocket, policy: str) -> Tuple[Optional[str], Optional[int]]:
    s = o.socket
    if policy == "hide" or not s.has_remote:
        return None, None
    if policy == "redact_external" and not is_loopback(s.raddr):
        return REDACTED, s.rport
    return s.raddr, s.rport
