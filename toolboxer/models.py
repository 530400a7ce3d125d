from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Mapping, Optional, Tuple


class Protocol(str, Enum):
    TCP = "TCP"
    UDP = "UDP"


class Family(str, Enum):
    IPV4 = "IPv4"
    IPV6 = "IPv6"


class SocketState(str, Enum):
    LISTEN = "LISTEN"
    ESTABLISHED = "ESTABLISHED"
    SYN_SENT = "SYN_SENT"
    SYN_RECV = "SYN_RECV"
    FIN_WAIT1 = "FIN_WAIT1"
    FIN_WAIT2 = "FIN_WAIT2"
    TIME_WAIT = "TIME_WAIT"
    CLOSE = "CLOSE"
    CLOSE_WAIT = "CLOSE_WAIT"
    LAST_ACK = "LAST_ACK"
    CLOSING = "CLOSING"
    DELETE_TCB = "DELETE_TCB"
    NONE = "NONE"  # stateless UDP

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SocketState":
        """Map the spellings used by psutil, ss and netstat onto one enum."""
        if not raw:
            return cls.NONE
        key = raw.strip().upper().replace("-", "_")
        return _STATE_ALIASES.get(key, cls.NONE)


_STATE_ALIASES = {s.value: s for s in SocketState}
_STATE_ALIASES.update({
    "LISTENING": SocketState.LISTEN,
    "ESTAB": SocketState.ESTABLISHED,
    "SYN_RECEIVED": SocketState.SYN_RECV,
    "FIN_WAIT_1": SocketState.FIN_WAIT1,
    "FIN_WAIT_2": SocketState.FIN_WAIT2,
    "CLOSED": SocketState.CLOSE,
    "UNCONN": SocketState.NONE,
    "UNCONNECTED": SocketState.NONE,
})


class Resolution(str, Enum):
    RESOLVED = "resolved"
    PID_ONLY = "pid_only"  # pid known, process gone or hidden
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SocketRecord:
    protocol: Protocol
    laddr: str
    lport: int
    raddr: Optional[str] = None
    rport: Optional[int] = None
    state: SocketState = SocketState.NONE
    pid: Optional[int] = None
    family: Family = Family.IPV4

    @property
    def has_remote(self) -> bool:
        return bool(self.raddr) and bool(self.rport)


@dataclass(frozen=True)
class ProcessRecord:
    pid: int
    name: str
    ppid: Optional[int] = None
    exe: str = ""
    username: str = ""

    @property
    def label(self) -> str:
        return f"{self.name or '?'}({self.pid})"


class ProcessDirectory(Mapping[int, ProcessRecord]):
    """Read-only PID -> ProcessRecord lookup for a single snapshot."""

    def __init__(self, records=()):
        self._by_pid: dict[int, ProcessRecord] = {}
        for rec in records:
            self._by_pid[rec.pid] = rec

    def __getitem__(self, pid: int) -> ProcessRecord:
        return self._by_pid[pid]

    def __iter__(self) -> Iterator[int]:
        return iter(self._by_pid)

    def __len__(self) -> int:
        return len(self._by_pid)

    def __repr__(self) -> str:
        return f"ProcessDirectory({len(self._by_pid)} processes)"


@dataclass(frozen=True)
class AncestryChain:
    """Owner first, then its parents, bounded and cycle free."""
    records: Tuple[ProcessRecord, ...] = ()
    cycle_pid: Optional[int] = None
    truncated: bool = False
    missing_parent: Optional[int] = None

    def __iter__(self) -> Iterator[ProcessRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, idx):
        return self.records[idx]

    @property
    def pids(self) -> Tuple[int, ...]:
        return tuple(r.pid for r in self.records)


@dataclass(frozen=True)
class OwnedSocket:
    socket: SocketRecord
    resolution: Resolution
    owner: Optional[ProcessRecord] = None
    ancestry: AncestryChain = field(default_factory=AncestryChain)

    @property
    def pid(self) -> Optional[int]:
        return self.socket.pid
