from __future__ import annotations
import fnmatch
import os
import stat
from datetime import datetime
from typing import List, Tuple

from ..config import TreeConfig
from ..errors import UsageError

BRANCH = "├── "
LAST = "└── "
PIPE = "│   "
SPACE = "    "

UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")
FILE_ATTRIBUTE_HIDDEN = 0x2


def human_size(n: int) -> str:
    size = float(n)
    for unit in UNITS:
        if size < 1024 or unit == UNITS[-1]:
            return f"{int(size)} {unit}" if unit == "B" else f"{size:.2f} {unit}"
        size /= 1024
    return f"{n} B"


def is_hidden(entry: os.DirEntry) -> bool:
    if entry.name.startswith('.'):
        return True
    attrs = getattr(entry.stat(follow_symlinks=False), "st_file_attributes", 0)
    return bool(attrs & FILE_ATTRIBUTE_HIDDEN)


def _sort_key(cfg: TreeConfig):
    def key(entry_stat: Tuple[os.DirEntry, os.stat_result]):
        entry, st = entry_stat
        name = entry.name.casefold()
        is_dir = stat.S_ISDIR(st.st_mode)
        if cfg.sort_by == "type":
            return (not is_dir, os.path.splitext(entry.name)[1].casefold(), name)
        if cfg.sort_by == "size":
            return (-st.st_size, name)
        if cfg.sort_by == "date":
            return (-st.st_mtime, name)
        return (name,)
    return key


def _meta(st: os.stat_result, cfg: TreeConfig) -> str:
    parts = []
    if cfg.show_permissions:
        parts.append(stat.filemode(st.st_mode))
    if cfg.show_size:
        parts.append(human_size(st.st_size))
    if cfg.show_date:
        parts.append(datetime.fromtimestamp(st.st_mtime).strftime("%Y-%m-%d %H:%M"))
    return f"[{' '.join(parts)}] " if parts else ""


class _Walker:
    def __init__(self, cfg: TreeConfig):
        self.cfg = cfg
        self.dirs = 0
        self.files = 0
        self.lines: List[str] = []

    def entries(self, path: str) -> List[Tuple[os.DirEntry, os.stat_result]]:
        chosen = []
        with os.scandir(path) as it:
            for entry in it:
                if not self.cfg.show_hidden and is_hidden(entry):
                    continue
                st = entry.stat(follow_symlinks=False)
                is_dir = stat.S_ISDIR(st.st_mode)
                if not is_dir:
                    if self.cfg.directories_only:
                        continue
                    if self.cfg.pattern and not fnmatch.fnmatch(entry.name, self.cfg.pattern):
                        continue
                chosen.append((entry, st))
        chosen.sort(key=_sort_key(self.cfg))
        return chosen

    def walk(self, path: str, prefix: str, depth: int) -> None:
        if self.cfg.max_depth is not None and depth >= self.cfg.max_depth:
            return
        try:
            children = self.entries(path)
        except OSError as e:
            self.lines.append(f"{prefix}{LAST}[error: {e.strerror or e}]")
            return
        for i, (entry, st) in enumerate(children):
            last = i == len(children) - 1
            is_dir = stat.S_ISDIR(st.st_mode)
            name = entry.name + ("/" if is_dir else "")
            self.lines.append(f"{prefix}{LAST if last else BRANCH}{_meta(st, self.cfg)}{name}")
            if is_dir:
                self.dirs += 1
                self.walk(entry.path, prefix + (SPACE if last else PIPE), depth + 1)
            else:
                self.files += 1


def execute(cfg: TreeConfig) -> str:
    root = str(cfg.root)
    if not os.path.isdir(root):
        raise UsageError(f"not a directory: {root}")
    walker = _Walker(cfg)
    walker.lines.append(root)
    walker.walk(root, "", 0)
    summary = f"{walker.dirs} director{'ies' if walker.dirs != 1 else 'y'}"
    if not cfg.directories_only:
        summary += f", {walker.files} file{'s' if walker.files != 1 else ''}"
    return "\n".join(walker.lines) + "\n\n" + summary + "\n"
