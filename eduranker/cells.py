from __future__ import annotations
import re
from typing import Any, Union
import numpy as np

Number = Union[int, float]

FRACTION_RE = re.compile(r"^(\d+)\s*/\s*\d+$")
NUMERIC_RE = re.compile(r"^[-+]?\d+(?:\.\d+)?$")


def _fits_float(n: int) -> bool:
    try:
        float(n)
    except OverflowError:
        return False
    return True


def _as_number(v: Any) -> Number | None:
    # numeric cell types straight from the reader (python or numpy scalars)
    if isinstance(v, (bool, np.bool_)):
        return None
    if isinstance(v, (int, np.integer)):
        return int(v) if _fits_float(int(v)) else None
    if isinstance(v, (float, np.floating)):
        return float(v) if np.isfinite(v) else None
    return None


def _from_text(s: str) -> Number:
    # very long digit runs: int() refuses them, float() turns them into inf
    try:
        num = float(s) if "." in s else int(s)
    except (ValueError, OverflowError):
        return 0
    if isinstance(num, int):
        return num if _fits_float(num) else 0
    return num if np.isfinite(num) else 0


def parse_numeric(value: Any) -> Number:
    """
    Mark from a raw cell.
      80        -> 80
      "75/100"  -> 75  (numerator of a fraction-like score)
      "62.5"    -> 62.5
      "JEE - 1" -> 0   (labels never contribute embedded digits)
    Unparseable input is 0, never an exception.
    """
    if value is None:
        return 0
    num = _as_number(value)
    if num is not None:
        return num
    if not isinstance(value, str):
        return 0

    s = value.strip()
    if not s:
        return 0
    m = FRACTION_RE.match(s)
    if m:
        return _from_text(m.group(1))
    if NUMERIC_RE.match(s):
        return _from_text(s)
    return 0


def looks_like_mark(value: Any) -> bool:
    if _as_number(value) is not None:
        return True
    if not isinstance(value, str):
        return False
    s = value.strip()
    return bool(FRACTION_RE.match(s) or NUMERIC_RE.match(s))
