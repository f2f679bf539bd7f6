from __future__ import annotations
import os
import re
import json
import math
from pathlib import Path
from typing import Any

_DASH_CHARS_RE = re.compile(r"[\u2010\u2011\u2012\u2013\u2014\u2212]")
_NBSP_RE = re.compile(r"[\u00A0\u2007\u202F]")  # NBSP variants
_NON_DIGIT_RE = re.compile(r"\D+")


def user_data_dir() -> Path:
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / "EduRanker"
    return Path.home() / ".eduranker"


def load_json(path: Path, default: Any):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return default


def is_blank(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, float) and math.isnan(v):
        return True
    return isinstance(v, str) and not v.strip()


def cell_text(v: Any) -> str:
    """
    Cell value as a trimmed string; None/NaN become "".
    Whole floats (Excel stores ids as 123.0) are printed without the fraction.
    """
    if is_blank(v):
        return ""
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v).replace("\ufeff", "").strip()


def norm_text(s: Any) -> str:
    """
    Header/label normalisation:
    - BOM and non-breaking spaces
    - surrounding quotes
    - lower case
    - all dash variants -> '-'
    - collapsed whitespace
    """
    s = cell_text(s)
    if not s:
        return ""
    s = _NBSP_RE.sub(" ", s).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ('"', "'"):
        s = s[1:-1].strip()
    s = s.lower()
    s = _DASH_CHARS_RE.sub("-", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def compact_text(s: Any) -> str:
    # "Roll  No" -> "rollno"
    return re.sub(r"\s+", "", norm_text(s))


def digits_only(s: Any) -> str:
    return _NON_DIGIT_RE.sub("", cell_text(s))
