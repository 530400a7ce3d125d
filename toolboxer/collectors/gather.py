from __future__ import annotations
import logging
import platform
import threading
import time
from typing import Optional, Sequence, Tuple

from ..errors import PermissionDenied, PlatformUnsupported, QueryTimeout
from ..models import SocketRecord
from ..ownership.snapshot import Snapshot
from .base import Collector
from .generic import PsutilCollector
from .linux import SsCollector
from .windows import NetstatCollector

logger = logging.getLogger(__name__)

BACKENDS = {
    "psutil": PsutilCollector,
    "ss": SsCollector,
    "netstat": NetstatCollector,
}


def native_backend(system: Optional[str] = None) -> Optional[str]:
    system = system or platform.system()
    if system == 'Windows':
        return "netstat"
    if system == 'Linux':
        return "ss"
    return None


class AutoCollector(PsutilCollector):
    """psutil first; the platform tool when psutil is refused (macOS without root)."""

    name = "auto"

    def __init__(self, timeout: float = 10.0, system: Optional[str] = None):
        super().__init__(timeout)
        self.system = system

    def enumerate_sockets(self, protocol_filter: str = "both") -> Sequence[SocketRecord]:
        try:
            return super().enumerate_sockets(protocol_filter)
        except (PermissionDenied, PlatformUnsupported) as e:
            fallback = native_backend(self.system)
            if fallback is None:
                raise
            logger.warning("psutil could not list sockets (%s); falling back to %s", e, fallback)
            return BACKENDS[fallback](self.timeout).enumerate_sockets(protocol_filter)


def select_collector(name: str = "auto", timeout: float = 10.0) -> Collector:
    if name == "auto":
        return AutoCollector(timeout)
    try:
        cls = BACKENDS[name]
    except KeyError:
        raise PlatformUnsupported(f"unknown socket backend {name!r}") from None
    logger.debug("using %s backend", name)
    return cls(timeout)


def _run_detached(name: str, fn, *args) -> Tuple[threading.Thread, dict]:
    box: dict = {}

    def target():
        try:
            box["value"] = fn(*args)
        except BaseException as exc:  # re-raised in the caller's thread
            box["error"] = exc

    t = threading.Thread(target=target, name=f"snapshot-{name}", daemon=True)
    t.start()
    return t, box


def take_snapshot(collector: Collector, protocol_filter: str = "both",
                  timeout: float = 10.0) -> Snapshot:
    """Query sockets and processes concurrently and join both before returning.

    Workers are daemon threads: a query that hangs past the deadline is left
    behind and does not keep the interpreter alive.
    """
    started = time.monotonic()
    deadline = started + timeout
    workers = [
        _run_detached("sockets", collector.enumerate_sockets, protocol_filter),
        _run_detached("processes", collector.build_process_directory),
    ]
    results = []
    for t, box in workers:
        t.join(max(0.0, deadline - time.monotonic()))
        if t.is_alive():
            raise QueryTimeout(f"host introspection did not finish within {timeout:g}s")
        if "error" in box:
            raise box["error"]
        results.append(box["value"])
    sockets, directory = results
    logger.debug("snapshot: %d sockets, %d processes in %.3fs",
                 len(sockets), len(directory), time.monotonic() - started)
    return Snapshot(sockets=tuple(sockets), directory=directory)
