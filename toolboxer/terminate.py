from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import FrozenSet, Optional

import psutil

from .config import DEFAULT_KILL_TIMEOUT, PROTECTED_NAMES
from .errors import NotFound, ProtectedProcess, TerminationDenied

logger = logging.getLogger(__name__)

# idle/swapper, init, Windows "System"
PROTECTED_PIDS = frozenset({0, 1, 4})


@dataclass(frozen=True)
class TerminationResult:
    pid: int
    name: str
    forced: bool
    exited: bool

    @property
    def action(self) -> str:
        return "killed" if self.forced else "terminated"

    def describe(self) -> str:
        if self.exited:
            return f"{self.action} {self.name} (PID {self.pid})"
        return (f"sent {'kill' if self.forced else 'terminate'} request to {self.name} "
                f"(PID {self.pid}); still running after the wait")


def check_protected(pid: int, name: str, protected_names: FrozenSet[str] = PROTECTED_NAMES) -> None:
    if pid in PROTECTED_PIDS or name in protected_names:
        raise ProtectedProcess(f"refusing to terminate protected process {name} (PID {pid})")
    if pid == os.getpid():
        raise ProtectedProcess(f"refusing to terminate this tool itself (PID {pid})")


def terminate(pid: int, force: bool = False, timeout: float = DEFAULT_KILL_TIMEOUT,
              protected_names: Optional[FrozenSet[str]] = None) -> TerminationResult:
    """
    One termination attempt against pid.

    Graceful terminate() by default, kill() when force is set. Waits up to
    timeout seconds for the process to go away; never retries or escalates.
    """
    try:
        proc = psutil.Process(pid)
        name = proc.name()
    except psutil.NoSuchProcess as e:
        raise NotFound(f"PID {pid} no longer exists") from e
    except psutil.AccessDenied:
        name = "?"
    check_protected(pid, name, PROTECTED_NAMES if protected_names is None else protected_names)

    try:
        if force:
            proc.kill()
        else:
            proc.terminate()
    except psutil.NoSuchProcess as e:
        raise NotFound(f"PID {pid} exited before it could be terminated") from e
    except psutil.AccessDenied as e:
        raise TerminationDenied(f"not allowed to terminate {name} (PID {pid})") from e
    except PermissionError as e:
        raise TerminationDenied(f"not allowed to terminate {name} (PID {pid}): {e}") from e

    try:
        proc.wait(timeout=timeout)
        exited = True
    except psutil.TimeoutExpired:
        exited = False
    except psutil.NoSuchProcess:
        exited = True
    logger.debug("terminate pid=%d force=%s exited=%s", pid, force, exited)
    return TerminationResult(pid=pid, name=name, forced=force, exited=exited)
