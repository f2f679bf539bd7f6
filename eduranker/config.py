from __future__ import annotations
import os
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional
from .utils import load_json, user_data_dir

logger = logging.getLogger(__name__)

RULES_ENV = "EDURANKER_RULES"


@dataclass(frozen=True)
class Settings:
    header_scan_rows: int = 10
    top_n: int = 10
    id_pad_width: int = 5
    suffix_digits: int = 4
    base64_min_length: int = 100
    link_sample_rows: int = 10


def rules_path() -> Path:
    env = os.environ.get(RULES_ENV)
    if env:
        return Path(env)
    return user_data_dir() / "rules.json"


def _coerce(overrides: Dict[str, Any]) -> Dict[str, int]:
    known = {f.name for f in fields(Settings)}
    out: Dict[str, int] = {}
    for k, v in overrides.items():
        if k not in known:
            logger.debug("ignoring unknown setting %r", k)
            continue
        try:
            iv = int(v)
        except (TypeError, ValueError):
            logger.warning("setting %r has non-integer value %r, using default", k, v)
            continue
        if iv < 1:
            logger.warning("setting %r must be positive, got %r", k, v)
            continue
        out[k] = iv
    return out


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Settings from the JSON rules file, defaults for anything missing.
    A missing or unreadable file is not an error.
    """
    p = Path(path) if path is not None else rules_path()
    raw = load_json(p, {})
    if not isinstance(raw, dict):
        logger.warning("rules file %s is not a JSON object, using defaults", p)
        return Settings()
    return replace(Settings(), **_coerce(raw))
