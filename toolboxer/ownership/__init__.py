from .ancestry import attach_ancestry, build_ancestry, walk_ancestry
from .correlate import correlate, resolve_owner
from .snapshot import Snapshot

__all__ = [
    "Snapshot", "correlate", "resolve_owner",
    "build_ancestry", "walk_ancestry", "attach_ancestry",
]
