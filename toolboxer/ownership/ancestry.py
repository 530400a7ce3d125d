"""
Parent chains for socket owners.

The walk follows ppid links with an explicit visited set, so a kernel oddity
or a reused PID that forms a loop is reported as a cycle instead of being
mistaken for a long chain that merely got truncated.
"""
from __future__ import annotations
import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Tuple

from ..models import AncestryChain, OwnedSocket, ProcessRecord, Resolution

logger = logging.getLogger(__name__)


def walk_ancestry(owner_pid: int, directory: Mapping[int, ProcessRecord],
                  max_depth: int) -> AncestryChain:
    """
    Collect at most max_depth records starting at owner_pid.

    Stops when the parent is absent, when max_depth records are collected
    (truncated), when the next parent was already visited (cycle, the repeat
    is not appended) or when the parent is missing from the directory.
    """
    if max_depth <= 0:
        return AncestryChain()
    rec = directory.get(owner_pid)
    if rec is None:
        return AncestryChain()

    records: List[ProcessRecord] = [rec]
    visited = {rec.pid}
    while True:
        ppid = rec.ppid
        if ppid is None:
            return AncestryChain(records=tuple(records))
        if ppid in visited:
            logger.debug("ppid cycle at pid %d while walking from pid %d", ppid, owner_pid)
            return AncestryChain(records=tuple(records), cycle_pid=ppid)
        if len(records) >= max_depth:
            return AncestryChain(records=tuple(records), truncated=True)
        parent = directory.get(ppid)
        if parent is None:
            return AncestryChain(records=tuple(records), missing_parent=ppid)
        records.append(parent)
        visited.add(ppid)
        rec = parent


def build_ancestry(owner_pid: int, directory: Mapping[int, ProcessRecord],
                   max_depth: int) -> Tuple[ProcessRecord, ...]:
    return walk_ancestry(owner_pid, directory, max_depth).records


def attach_ancestry(owned: Iterable[OwnedSocket], directory: Mapping[int, ProcessRecord],
                    max_depth: int) -> List[OwnedSocket]:
    """Return copies of the resolved entries carrying their owner's chain."""
    chains: Dict[int, AncestryChain] = {}
    out: List[OwnedSocket] = []
    for o in owned:
        if o.resolution is not Resolution.RESOLVED or o.owner is None:
            out.append(o)
            continue
        chain = chains.get(o.owner.pid)
        if chain is None:
            chain = chains[o.owner.pid] = walk_ancestry(o.owner.pid, directory, max_depth)
        out.append(replace(o, ancestry=chain))
    return out
