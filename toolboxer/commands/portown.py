from __future__ import annotations
import logging
import sys
from dataclasses import replace
from typing import Optional, Sequence, TextIO

from ..collectors import Collector, select_collector, take_snapshot
from ..config import PortownConfig
from ..errors import NotFound, UsageError
from ..models import OwnedSocket, Resolution
from ..ownership import Snapshot, attach_ancestry, correlate
from ..render import FilterOptions, render, render_json, select
from ..terminate import terminate

logger = logging.getLogger(__name__)


def build_snapshot(cfg: PortownConfig, collector: Optional[Collector] = None) -> Snapshot:
    collector = collector or select_collector(cfg.backend, cfg.timeout)
    snap = take_snapshot(collector, cfg.protocol, cfg.timeout)
    owned = correlate(snap.sockets, snap.directory)
    owned = attach_ancestry(owned, snap.directory, cfg.depth)
    return replace(snap, owned=tuple(owned))


def resolve_kill_target(snap: Snapshot, options: FilterOptions,
                        port: Optional[int], pid: Optional[int]) -> int:
    """Narrow the user's --port/--pid selection down to exactly one PID."""
    if pid is not None:
        if pid not in snap.directory:
            raise NotFound(f"PID {pid} is not running")
        return pid
    if port is None:
        raise UsageError("--kill needs a target: --port PORT or --pid PID")

    on_port: Sequence[OwnedSocket] = select(snap.owned, replace(options, port=port, pid=None))
    pids = sorted({o.owner.pid for o in on_port if o.resolution is Resolution.RESOLVED})
    if not pids:
        if on_port:
            raise UsageError(f"the owner of port {port} could not be resolved (insufficient privileges?)")
        raise UsageError(f"no matching socket on port {port}")
    if len(pids) > 1:
        names = ", ".join(snap.directory[p].label for p in pids)
        raise UsageError(f"port {port} is owned by several processes: {names}; use --pid")
    return pids[0]


def execute(cfg: PortownConfig, port: Optional[int] = None, pid: Optional[int] = None,
            kill: bool = False, force: bool = False, collector: Optional[Collector] = None,
            out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    err = err or sys.stderr
    snap = build_snapshot(cfg, collector)
    options = FilterOptions.from_config(cfg, port=port, pid=pid)

    # usage mistakes abort before any output; a vanished --pid is reported after the listing
    target = None
    if kill and pid is None:
        target = resolve_kill_target(snap, options, port, None)

    text = render_json(snap.owned, options) if cfg.json_output else render(snap.owned, options)
    out.write(text)
    out.flush()

    if not kill:
        return 0
    if target is None:
        target = resolve_kill_target(snap, options, port, pid)

    err.write(f"warning: PID {target} comes from a snapshot and may have been reused "
              f"by another process since\n")
    result = terminate(target, force=force, timeout=cfg.kill_timeout,
                       protected_names=cfg.protected_names)
    out.write(result.describe() + "\n")
    return 0
