import os
from pathlib import Path
from typing import Optional

CONFIG_ENV = "TOOLBOXER_CONFIG"
CONFIG_DIR = Path("~/.config/toolboxer")
CONFIG_NAMES = ("portown.yaml", "portown.yml", "portown.json")


def to_abs_path(p: Optional[str | os.PathLike]) -> Optional[Path]:
    """Convert p to an absolute path.
    Sequence:
      1) Absolute: expanduser+resolve
      2) Relative to CWD
    """
    if not p:
        return None
    pp = Path(p).expanduser()
    if pp.is_absolute():
        return pp.resolve()
    return (Path.cwd() / pp).resolve()


def find_config_file(explicit: Optional[str] = None) -> Optional[Path]:
    """Locate the portown config file.
    Sequence:
      1) --config value (returned even if missing, the loader complains)
      2) $TOOLBOXER_CONFIG
      3) first existing file in ~/.config/toolboxer
    """
    if explicit:
        return to_abs_path(explicit)
    env = os.environ.get(CONFIG_ENV)
    if env:
        return to_abs_path(env)
    base = CONFIG_DIR.expanduser()
    for name in CONFIG_NAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None
