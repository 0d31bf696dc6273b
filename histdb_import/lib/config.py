import os
import socket
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

DEFAULT_IGNORE = ",".join([
    "cd",
    "ls",
    "top",
    "htop",
])


def _home_dir():
    return os.environ.get("HOME") or str(Path.home())


def _host_name():
    try:
        return socket.gethostname()
    except OSError:
        return "UNKNOWN"


def split_ignore(value):
    """
    Accepts a comma-joined string or a list. Empty items are kept, so ""
    ignores entries with an empty command.
    """
    if isinstance(value, str):
        return tuple(value.split(","))
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"ignore must be a string or a list, got {value!r}")
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class ImportConfig:
    """Run-wide settings, read once at startup"""
    database: str
    history: str
    ignore: tuple
    host: str
    home_dir: str
    session: str = "0"
    exit_status: str = "0"

    @classmethod
    def defaults(cls):
        home = _home_dir()
        return cls(
            database=os.path.join(home, ".histdb", "zsh-history.db"),
            history=os.path.join(home, ".zsh_history"),
            ignore=split_ignore(DEFAULT_IGNORE),
            host=_host_name(),
            home_dir=home,
        )

    def updated(self, **overrides):
        """Return a copy with every override that is not None applied"""
        values = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if key == "ignore":
                values[key] = split_ignore(value)
            else:
                values[key] = str(value)
        return replace(self, **values)


def load_config(path):
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    known = {f.name for f in fields(ImportConfig)}
    for key in data:
        if key not in known:
            raise ValueError(f"Unknown config key '{key}' in {path}")
    return data
