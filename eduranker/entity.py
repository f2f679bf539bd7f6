from __future__ import annotations
import re
import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from .errors import EmptySheet, HeaderNotFound
from .header_detect import HEADER_SCAN_ROWS, locate_header
from .infer import RosterColumns, detect_roster_columns
from .models import RawRow, RosterTrace
from .utils import cell_text, digits_only

logger = logging.getLogger(__name__)

PhotoLookup = Mapping[str, str]

ID_PAD_WIDTH = 5
SUFFIX_DIGITS = 4
BASE64_MIN_LENGTH = 100

DATA_URI_PREFIX = "data:image/"
BASE64_PREFIX = "data:image/jpeg;base64,"
DRIVE_VIEW_URL = "https://drive.google.com/uc?export=view&id={file_id}"

_B64_RE = re.compile(r"^[A-Za-z0-9+/=\r\n]+$")
_WS_RE = re.compile(r"\s+")
_DRIVE_RE = re.compile(r"https?://drive\.google\.com/", re.I)
_DRIVE_ID_RES = [
    re.compile(r"/(?:file/)?d/([^/?#]+)"),   # /file/d/{id}/view, /d/{id}
    re.compile(r"[?&]id=([^&#]+)"),          # open?id={id}, uc?export=view&id={id}
]


def drive_file_id(url: str) -> Optional[str]:
    for rx in _DRIVE_ID_RES:
        m = rx.search(url)
        if m and m.group(1):
            return m.group(1)
    return None


def normalize_photo(value: Any, base64_min_length: int = BASE64_MIN_LENGTH) -> str:
    """
    Photo cell -> something a renderer can put in <img src>.
      data URI           -> unchanged
      bare base64 blob   -> data:image/jpeg;base64,...
      Google Drive share -> direct view URL
      anything else      -> unchanged (http(s) URL, file path)
    """
    raw = cell_text(value)
    if not raw:
        return ""
    if raw.startswith(DATA_URI_PREFIX):
        return raw

    if _B64_RE.match(raw):
        blob = _WS_RE.sub("", raw)
        if len(blob) > base64_min_length:
            return BASE64_PREFIX + blob

    if _DRIVE_RE.search(raw):
        file_id = drive_file_id(raw)
        if file_id:
            return DRIVE_VIEW_URL.format(file_id=file_id)
    return raw


def _strip_zeros(d: str) -> str:
    return d.lstrip("0")


def id_variants(raw_id: Any, pad_width: int = ID_PAD_WIDTH) -> List[str]:
    """
    Keys one roster id is stored under, e.g. "00123" ->
    ["00123", "123"], "R-42" -> ["R-42", "42", "00042", "r-42"].
    """
    rid = cell_text(raw_id)
    if not rid:
        return []
    digits = digits_only(rid)
    out = [rid]
    if digits:
        out.append(digits)
        out.append(_strip_zeros(digits))
        if len(digits) < pad_width:
            padded = digits.zfill(pad_width)
            out.append(padded)
            out.append(_strip_zeros(padded))
    out.append(rid.lower())

    seen = set()
    uniq = []
    for k in out:
        if k and k not in seen:
            seen.add(k)
            uniq.append(k)
    return uniq


def _roster_labels(rows: Sequence[RawRow], max_scan_rows: int = HEADER_SCAN_ROWS) -> Tuple[Dict[str, str], Sequence[RawRow]]:
    """
    (row key -> header text, data rows). Rosters normally carry their header
    on line 1 (the keys); otherwise the header row is located in the values.
    """
    keys = list(rows[0].keys())
    labels = {k: str(k) for k in keys}
    try:
        header = locate_header(rows, max_scan_rows=max_scan_rows)
    except HeaderNotFound:
        return labels, rows
    if header.from_keys:
        return labels, rows
    located = {k: cell_text(v) for k, v in header.row.items() if cell_text(v)}
    return located, rows[header.data_start:]


def _row_photo(r: RawRow, cols: RosterColumns, base64_min_length: int) -> str:
    for key in [cols.photo_key, cols.link_key, *cols.generic_keys]:
        if key is None:
            continue
        v = cell_text(r.get(key))
        if v:
            return normalize_photo(v, base64_min_length)
    return ""


def build_lookup(
    roster_rows: Sequence[RawRow],
    *,
    pad_width: int = ID_PAD_WIDTH,
    base64_min_length: int = BASE64_MIN_LENGTH,
    link_sample_rows: int = 10,
    header_scan_rows: int = HEADER_SCAN_ROWS,
) -> Tuple[PhotoLookup, RosterTrace]:
    """
    Read-only identifier-variant -> photo mapping built from the roster.
    Later rows overwrite earlier ones on a shared key.
    """
    if not roster_rows:
        raise EmptySheet("roster")

    labels, data_rows = _roster_labels(roster_rows, header_scan_rows)
    cols = detect_roster_columns(labels, data_rows, link_sample_rows=link_sample_rows)
    trace = RosterTrace(
        id_column=labels.get(cols.id_key, cols.id_key),
        photo_column=labels.get(cols.photo_key) if cols.photo_key else None,
        link_column=labels.get(cols.link_key) if cols.link_key else None,
        rows=len(data_rows),
    )

    lookup: Dict[str, str] = {}
    for r in data_rows:
        rid = cell_text(r.get(cols.id_key))
        if not rid:
            continue
        photo = _row_photo(r, cols, base64_min_length)
        if not photo:
            trace.rows_without_photo += 1
            continue
        trace.rows_with_photo += 1
        for k in id_variants(rid, pad_width):
            lookup[k] = photo

    trace.keys = len(lookup)
    logger.debug("photo lookup: %d photos, %d keys", trace.rows_with_photo, trace.keys)
    return MappingProxyType(lookup), trace


def resolve_photo(
    lookup: PhotoLookup,
    candidate_id: Any,
    *,
    pad_width: int = ID_PAD_WIDTH,
    suffix_digits: int = SUFFIX_DIGITS,
) -> Optional[str]:
    """
    Photo for a ranked candidate, trying in order: exact id, digits only,
    digits without leading zeros, zero-padded digits, lower case, and finally
    the first key ending in the same last digits. None when nothing matches.
    """
    cid = cell_text(candidate_id)
    if not cid or not lookup:
        return None

    digits = digits_only(cid)
    attempts = [cid]
    if digits:
        attempts.append(digits)
        stripped = _strip_zeros(digits)
        if stripped != digits:
            attempts.append(stripped)
        if len(digits) < pad_width:
            attempts.append(digits.zfill(pad_width))
    attempts.append(cid.lower())

    for k in attempts:
        if k and k in lookup:
            return lookup[k]

    if len(digits) >= suffix_digits:
        tail = digits[-suffix_digits:]
        for key, photo in lookup.items():
            if key.endswith(tail):
                logger.debug("photo for %r matched by suffix %r -> key %r", cid, tail, key)
                return photo
    return None
