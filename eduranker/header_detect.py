from __future__ import annotations
import re
import logging
from typing import Any, Iterable, List, Optional, Sequence
from .errors import HeaderNotFound
from .models import HeaderMatch, RawRow
from .utils import cell_text, norm_text

logger = logging.getLogger(__name__)

HEADER_SCAN_ROWS = 10

# Tokens that only appear in the title row of a marks/roster sheet
HEADER_KWS = ["candidate id", "candidate name", "roll no"]

# Words that mark a first-line cell as a column title rather than a sheet heading
A1_HEADING_AVOID = ["candidate", "roll"]
ROW_HEADING_AVOID = ["candidate", "name", "marks", "roll", "total"]

_LETTER_RE = re.compile(r"[A-Za-z]")
# labels invented by readers for blank header cells
_GENERATED_LABEL_RE = re.compile(r"^(col_\d+|__empty(_\d+)?)$", re.I)
_DUP_SUFFIX_RE = re.compile(r"__\d+$")


def is_header_line(values: Iterable[Any]) -> bool:
    for v in values:
        s = norm_text(v)
        if s and any(k in s for k in HEADER_KWS):
            return True
    return False


def locate_header(rows: Sequence[RawRow], max_scan_rows: int = HEADER_SCAN_ROWS) -> HeaderMatch:
    """
    First row (within max_scan_rows) whose values carry a header token.
    Headers are often pushed down by a title line or a merged banner.

    If no row's values qualify but the first row's keys do, the reader has
    already consumed the header line as labels; the keys are the header and
    every row is data (index -1).
    """
    n = min(max_scan_rows, len(rows))
    for i in range(n):
        row = rows[i]
        if is_header_line(row.values()):
            logger.debug("header row found at index %d", i)
            return HeaderMatch(index=i, row=row)

    if rows and is_header_line(rows[0].keys()):
        logger.debug("header taken from column labels")
        return HeaderMatch(index=-1, row={k: k for k in rows[0].keys()}, from_keys=True)

    raise HeaderNotFound(n)


def _heading_like(s: str, min_len: int, avoid: List[str]) -> bool:
    if len(s) < min_len or not _LETTER_RE.search(s):
        return False
    t = s.lower()
    return not any(w in t for w in avoid)


def extract_heading(first_row: Sequence[Any], merged_starts: Iterable[int] = (), max_cols: int = 20) -> str:
    """
    Free-text sheet heading from the first spreadsheet line, e.g.
    "PCM JEE CT-1 Marks Score List".
      1) A1 when it reads like a title
      2) the first merged range starting on line 1
      3) any long, title-like cell among the first max_cols
    """
    cells = [cell_text(v) for v in list(first_row)[:max_cols]]
    if not cells:
        return ""

    if _heading_like(cells[0], 5, A1_HEADING_AVOID):
        return cells[0]

    for c in sorted(merged_starts):
        if 0 <= c < len(cells) and len(cells[c]) >= 5:
            return cells[c]

    for s in cells:
        if _heading_like(s, 10, ROW_HEADING_AVOID):
            return s
    return ""


def first_line_heading(rows: Sequence[RawRow], header: Optional[HeaderMatch] = None) -> str:
    """
    Heading when only RawRows are available: the labels of the first row
    carry line 1 unless they are the header itself.
    """
    if not rows or (header is not None and header.from_keys):
        return ""
    labels = []
    for k in rows[0].keys():
        k = _DUP_SUFFIX_RE.sub("", str(k))
        labels.append("" if _GENERATED_LABEL_RE.match(k) else k)
    return extract_heading(labels)
