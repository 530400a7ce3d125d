from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml

from .errors import UsageError
from .utils.path import find_config_file, to_abs_path

logger = logging.getLogger(__name__)

PROTOCOLS = ("tcp", "udp", "both")
STATE_FILTERS = ("listening_only", "established_only", "all")
SORT_KEYS = ("by_port", "by_pid", "by_process_name")
REMOTE_POLICIES = ("show", "redact_external", "hide")
BACKENDS = ("auto", "psutil", "ss", "netstat")

# short CLI spellings
SORT_ALIASES = {"port": "by_port", "pid": "by_pid", "name": "by_process_name"}
REMOTE_ALIASES = {"show": "show", "redact": "redact_external", "hide": "hide"}

DEFAULT_DEPTH = 5
DEFAULT_TIMEOUT = 10.0
DEFAULT_KILL_TIMEOUT = 3.0

PROTECTED_NAMES = frozenset({
    "init", "systemd", "launchd", "kernel_task", "kthreadd",
    "System", "System Idle Process", "Registry", "smss.exe", "csrss.exe",
    "wininit.exe", "services.exe", "lsass.exe", "winlogon.exe",
})


@dataclass
class PortownConfig:
    protocol: str = "both"
    state_filter: str = "all"
    depth: int = DEFAULT_DEPTH
    sort: str = "by_port"
    remote: str = "show"
    backend: str = "auto"
    timeout: float = DEFAULT_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT
    protected_names: FrozenSet[str] = field(default=PROTECTED_NAMES)
    json_output: bool = False

    def validate(self) -> "PortownConfig":
        _check_choice("protocol", self.protocol, PROTOCOLS)
        _check_choice("state_filter", self.state_filter, STATE_FILTERS)
        _check_choice("sort", self.sort, SORT_KEYS)
        _check_choice("remote", self.remote, REMOTE_POLICIES)
        _check_choice("backend", self.backend, BACKENDS)
        if not isinstance(self.depth, int) or isinstance(self.depth, bool) or self.depth < 0:
            raise UsageError(f"depth must be a non-negative integer, got {self.depth!r}")
        for name in ("timeout", "kill_timeout"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value <= 0:
                raise UsageError(f"{name} must be a positive number, got {value!r}")
        return self


@dataclass
class TreeConfig:
    root: Path = Path(".")
    max_depth: Optional[int] = None
    show_hidden: bool = False
    sort_by: str = "name"  # name | type | size | date
    show_permissions: bool = False
    show_size: bool = False
    show_date: bool = False
    pattern: Optional[str] = None
    directories_only: bool = False


def _check_choice(name: str, value: Any, choices) -> None:
    if value not in choices:
        raise UsageError(f"invalid {name} {value!r} (choose from {', '.join(choices)})")


def load_config_file(path: Optional[Path]) -> Dict[str, Any]:
    """Read portown defaults from YAML (.yaml/.yml) or JSON."""
    if path is None:
        return {}
    if not path.exists():
        raise UsageError(f"config file not found: {path}")
    txt = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(txt) if path.suffix in (".yaml", ".yml") else json.loads(txt)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise UsageError(f"cannot parse config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise UsageError(f"config file {path} must contain a mapping")
    section = data.get("portown", data)
    if not isinstance(section, dict):
        raise UsageError(f"'portown' section in {path} must be a mapping")

    known = {f.name for f in fields(PortownConfig)}
    values: Dict[str, Any] = {}
    for key, value in section.items():
        if key not in known:
            logger.warning("ignoring unknown config key %r in %s", key, path)
            continue
        values[key] = value
    if "protected_names" in values:
        values["protected_names"] = PROTECTED_NAMES | frozenset(values["protected_names"] or ())
    logger.debug("loaded config from %s: %s", path, sorted(values))
    return values


def init_cfg_from_args(args, file_values: Optional[Dict[str, Any]] = None) -> PortownConfig:
    """File values first, then every flag the user actually passed."""
    cfg = PortownConfig(**(file_values or {}))
    if args.tcp_only:
        cfg.protocol = "tcp"
    elif args.udp_only:
        cfg.protocol = "udp"
    if args.listen:
        cfg.state_filter = "listening_only"
    elif args.established_only:
        cfg.state_filter = "established_only"
    if args.depth is not None:
        cfg.depth = args.depth
    if args.sort:
        cfg.sort = SORT_ALIASES.get(args.sort, args.sort)
    if args.remote:
        cfg.remote = REMOTE_ALIASES.get(args.remote, args.remote)
    if args.backend:
        cfg.backend = args.backend
    if args.timeout is not None:
        cfg.timeout = args.timeout
    if args.json:
        cfg.json_output = True
    return cfg.validate()


def load_portown_config(args) -> PortownConfig:
    path = find_config_file(getattr(args, "config", None))
    return init_cfg_from_args(args, load_config_file(path))


def init_tree_cfg_from_args(args) -> TreeConfig:
    if args.depth is not None and args.depth < 0:
        raise UsageError(f"depth must be a non-negative integer, got {args.depth}")
    if args.sort_type:
        sort_by = "type"
    elif args.sort_size:
        sort_by = "size"
    elif args.sort_date:
        sort_by = "date"
    else:
        sort_by = "name"
    return TreeConfig(
        root=to_abs_path(args.path) or Path.cwd(),
        max_depth=args.depth,
        show_hidden=bool(args.all),
        sort_by=sort_by,
        show_permissions=bool(args.permissions),
        show_size=bool(args.human_size),
        show_date=bool(args.modified),
        pattern=args.filter,
        directories_only=bool(args.dirs_only),
    )
