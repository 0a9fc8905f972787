from functools import lru_cache
from typing import Any

import yaml

from . import paths

DEFAULTS: dict[str, Any] = {
    "migrations_table": "migrations",
    "history_file": None,
    "prompt": "> ",
    "busy_timeout_ms": 5000,
    "query_params": ["query", "q"],
    "host": "127.0.0.1",
}


def clear_cache():
    load_config.cache_clear()


@lru_cache(maxsize=1)
def load_config() -> dict:
    """Load config.yaml merged over DEFAULTS; missing file means defaults only."""
    cfg = dict(DEFAULTS)
    path = paths.config_file()
    if path.exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at top level")
        cfg.update(data)
    if not cfg.get("history_file"):
        cfg["history_file"] = str(paths.history_file())
    return cfg


def get(key: str) -> Any:
    return load_config()[key]
