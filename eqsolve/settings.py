"""
Solver defaults persisted as local JSON.

Data is stored in ``<project>/data/eqsolve.json``. Stored values are
merged over :data:`DEFAULT_SETTINGS`, so new keys are always present.
"""

import json
import logging
import math
import os

logger = logging.getLogger(__name__)

_DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "data")
_DATA_FILE = os.path.join(_DATA_DIR, "eqsolve.json")

# ── Default settings ────────────────────────────────────────────────────
DEFAULT_SETTINGS = {
    "margin": 1e-9,
    "iter_limit": 100,
    "guess": 1.0,
    "lower": -math.inf,
    "upper": math.inf,
    "delimiter": "\n",
    "default_context": True,    # preload pi, e, ... for new contexts
}


def _ensure_dir() -> None:
    os.makedirs(_DATA_DIR, exist_ok=True)


def _load_db() -> dict:
    if os.path.exists(_DATA_FILE):
        try:
            with open(_DATA_FILE, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                return data
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", _DATA_FILE, e)
    return {"settings": {}}


def _save_db(db: dict) -> None:
    _ensure_dir()
    with open(_DATA_FILE, "w", encoding="utf-8") as f:
        json.dump(db, f, indent=2, ensure_ascii=False)


def get_settings() -> dict:
    """Return the stored settings merged over the defaults."""
    merged = dict(DEFAULT_SETTINGS)
    merged.update(_load_db().get("settings", {}))
    return merged


def save_settings(settings: dict) -> None:
    """Persist *settings*; unknown keys are rejected."""
    unknown = set(settings) - set(DEFAULT_SETTINGS)
    if unknown:
        raise ValueError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
    db = _load_db()
    stored = db.setdefault("settings", {})
    stored.update(settings)
    _save_db(db)


def reset_settings() -> None:
    """Forget every stored value."""
    _save_db({"settings": {}})
