from __future__ import annotations
import logging
import subprocess
from typing import List, Optional, Sequence

import psutil

from ..errors import PermissionDenied, PlatformUnsupported, QueryTimeout
from ..models import ProcessDirectory, ProcessRecord, Protocol, SocketRecord

logger = logging.getLogger(__name__)

PROTOCOL_KINDS = {
    "tcp": (Protocol.TCP,),
    "udp": (Protocol.UDP,),
    "both": (Protocol.TCP, Protocol.UDP),
}


def protocols_for(protocol_filter: str) -> tuple:
    try:
        return PROTOCOL_KINDS[protocol_filter]
    except KeyError:
        raise ValueError(f"unknown protocol filter {protocol_filter!r}") from None


class Collector:
    """One host facility for listing sockets; processes always come from psutil."""

    name = "base"

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    def enumerate_sockets(self, protocol_filter: str = "both") -> Sequence[SocketRecord]:
        raise NotImplementedError

    def build_process_directory(self) -> ProcessDirectory:
        records: List[ProcessRecord] = []
        try:
            for p in psutil.process_iter():
                rec = _process_record(p)
                if rec is not None:
                    records.append(rec)
        except psutil.AccessDenied as e:
            raise PermissionDenied(f"process enumeration refused: {e}") from e
        except OSError as e:
            raise PermissionDenied(f"process enumeration failed: {e}") from e
        logger.debug("%s: %d processes", self.name, len(records))
        return ProcessDirectory(records)

    def run_tool(self, argv: List[str]) -> str:
        """Run an introspection command with the collector's timeout."""
        try:
            out = subprocess.run(argv, capture_output=True, text=True,
                                 timeout=self.timeout, check=False)
        except FileNotFoundError as e:
            raise PlatformUnsupported(f"'{argv[0]}' is not available on this host") from e
        except subprocess.TimeoutExpired as e:
            raise QueryTimeout(f"'{' '.join(argv)}' did not finish within {self.timeout:g}s") from e
        except PermissionError as e:
            raise PermissionDenied(f"cannot run '{argv[0]}': {e}") from e
        if out.returncode != 0:
            err = (out.stderr or "").strip().splitlines()
            msg = err[-1] if err else f"exit status {out.returncode}"
            if "denied" in msg.lower() or "not permitted" in msg.lower():
                raise PermissionDenied(f"'{argv[0]}' refused: {msg}")
            raise PlatformUnsupported(f"'{argv[0]}' failed: {msg}")
        return out.stdout


def _ppid_or_none(ppid: Optional[int]) -> Optional[int]:
    if ppid is None or ppid <= 0:
        return None
    return ppid


def _process_record(p) -> Optional[ProcessRecord]:
    # ZombieProcess subclasses NoSuchProcess, so it is caught first
    pid = p.pid
    try:
        name = p.name()
    except (psutil.AccessDenied, psutil.ZombieProcess):
        name = "?"
    except psutil.NoSuchProcess:
        return None
    try:
        ppid = _ppid_or_none(p.ppid())
    except (psutil.AccessDenied, psutil.ZombieProcess):
        ppid = None
    except psutil.NoSuchProcess:
        return None
    try:
        exe = p.exe() or ""
    except (psutil.Error, OSError):
        exe = ""
    try:
        user = p.username()
    except (psutil.Error, KeyError, OSError):
        user = ""
    return ProcessRecord(pid=pid, name=name, ppid=ppid, exe=exe, username=user)
