# storage.py
# Simple JSON file storage helpers. One process-wide lock guards read-modify-write.

import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from . import config

logger = logging.getLogger("itemflow.backend")

FILES = {
    "items": list,
    "events": list,
    "counters": dict,
}

_lock = threading.RLock()


def _path(key: str) -> Path:
    if key not in FILES:
        raise KeyError(f"Unknown storage file: {key}")
    return Path(config.DATA_DIR) / f"{key}.json"


def read_json(key: str):
    p = _path(key)
    with _lock:
        if not p.exists():
            return FILES[key]()
        try:
            return json.loads(p.read_text())
        except ValueError:
            logger.error("Corrupt storage file %s, starting empty", p)
            return FILES[key]()


def write_json(key: str, obj: Any):
    p = _path(key)
    with _lock:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(obj, indent=2, default=str))


@contextmanager
def transaction(key: str):
    """Read, let the caller mutate, write back. Nothing is written if the body raises."""
    with _lock:
        data = read_json(key)
        yield data
        write_json(key, data)


def next_id(name: str) -> int:
    with transaction("counters") as counters:
        counters[name] = counters.get(name, 0) + 1
        return counters[name]
