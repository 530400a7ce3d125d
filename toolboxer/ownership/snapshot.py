from __future__ import annotations
from dataclasses import dataclass, field
from typing import Tuple

from ..models import OwnedSocket, ProcessDirectory, SocketRecord


@dataclass(frozen=True)
class Snapshot:
    """Everything gathered during one invocation; never refreshed."""
    sockets: Tuple[SocketRecord, ...] = ()
    directory: ProcessDirectory = field(default_factory=ProcessDirectory)
    owned: Tuple[OwnedSocket, ...] = ()
