import os
from pathlib import Path


def dot_sqlgate() -> Path:
    """Return the per-user sqlgate directory (``SQLGATE_HOME`` overrides it)."""
    override = os.environ.get("SQLGATE_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".sqlgate"


def config_file() -> Path:
    return dot_sqlgate() / "config.yaml"


def history_file() -> Path:
    return dot_sqlgate() / "history"
