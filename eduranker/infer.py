from __future__ import annotations
import re
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence
from rapidfuzz import fuzz, process
from .errors import MissingRequiredColumn
from .models import ColumnMap, RawRow, Subject
from .utils import cell_text, compact_text, norm_text

logger = logging.getLogger(__name__)

SYN = {
    "id": ["candidate id", "roll no", "roll number"],
    "name": ["candidate name", "student name", "name"],
}

# Sub-score columns ("PHY SEC A", "PHY INT SEC A") that share a subject prefix
SUBJECT_DECOY_KWS = ["SEC", "INT"]

ROSTER_ID_EXACT = ["candidateid", "rollno", "rollnumber"]
ROSTER_ID_CONTAINS = ["candidateid", "rollno", "rollnumber"]
ROSTER_ID_RE = re.compile(r"roll|candidate\s*id|cand\s*id")
ROSTER_PHOTO_EXACT = ["photo", "image", "photolink", "imagelink"]
ROSTER_PHOTO_CONTAINS = ["photo", "image"]
ROSTER_GENERIC_PHOTO = ["link", "photo", "image"]


def _suggest(role_kws: List[str], headers: Iterable[str]) -> Optional[str]:
    choices = [h for h in headers if h]
    if not choices:
        return None
    best = None
    for kw in role_kws:
        hit = process.extractOne(kw, choices, scorer=fuzz.partial_ratio, score_cutoff=60)
        if hit and (best is None or hit[1] > best[1]):
            best = hit
    return best[0] if best else None


def normalize_header(header_row: RawRow) -> Dict[str, str]:
    """header text (lower, trimmed) -> original column key; first occurrence wins"""
    out: Dict[str, str] = {}
    for key, value in header_row.items():
        text = norm_text(value)
        if not text:
            continue
        out.setdefault(text, key)
    return out


def _find_key(columns: Dict[str, str], keywords: List[str], exclude: Iterable[str] = ()) -> Optional[str]:
    skip = set(exclude)
    for text, key in columns.items():
        if key in skip:
            continue
        if any(text == k or k in text for k in keywords):
            return key
    return None


def _subject_exact(upper: str, subj: Subject) -> bool:
    code = subj.value
    return upper in (code, f"{code} TOTAL", f"{code} MARKS") or upper in subj.aliases


def _subject_prefix(upper: str, subj: Subject) -> bool:
    if any(k in upper for k in SUBJECT_DECOY_KWS):
        return False
    return any(upper.startswith(p) for p in (subj.value,) + subj.aliases)


def map_subjects(columns: Dict[str, str], exclude: Iterable[str] = ()) -> Dict[Subject, str]:
    skip = set(exclude)
    found: Dict[Subject, str] = {}
    for subj in Subject:
        for match in (_subject_exact, _subject_prefix):
            for text, key in columns.items():
                if key in skip:
                    continue
                if match(text.upper(), subj):
                    found[subj] = key
                    break
            if subj in found:
                break
    return found


def map_columns(header_row: RawRow) -> ColumnMap:
    """
    Semantic roles -> concrete row keys, from the located header row.
    id and name are required; subjects are optional.
    """
    columns = normalize_header(header_row)
    labels = {key: text for text, key in columns.items()}

    id_key = _find_key(columns, SYN["id"])
    if id_key is None:
        raise MissingRequiredColumn("candidate id", list(columns), _suggest(SYN["id"], columns))

    name_key = _find_key(columns, SYN["name"], exclude=[id_key])
    if name_key is None:
        raise MissingRequiredColumn("candidate name", list(columns), _suggest(SYN["name"], columns))

    subjects = map_subjects(columns, exclude=[id_key, name_key])
    logger.debug(
        "columns: id=%r name=%r subjects=%s",
        labels.get(id_key), labels.get(name_key),
        {s.value: labels.get(k) for s, k in subjects.items()},
    )
    return ColumnMap(id_key=id_key, name_key=name_key, subjects=subjects, labels=labels)


@dataclass
class RosterColumns:
    id_key: str
    photo_key: Optional[str] = None
    link_key: Optional[str] = None
    generic_keys: Sequence[str] = ()


def _pick_roster_id(compact: Dict[str, str], lowered: Dict[str, str]) -> Optional[str]:
    for key, c in compact.items():
        if c in ROSTER_ID_EXACT:
            return key
    for key, c in compact.items():
        if any(k in c for k in ROSTER_ID_CONTAINS):
            return key
    for key, t in lowered.items():
        if ROSTER_ID_RE.search(t):
            return key
    return None


def _pick_photo(compact: Dict[str, str]) -> Optional[str]:
    for key, c in compact.items():
        if c in ROSTER_PHOTO_EXACT:
            return key
    for key, c in compact.items():
        if any(k in c for k in ROSTER_PHOTO_CONTAINS):
            return key
    return None


def _pick_link(compact: Dict[str, str]) -> Optional[str]:
    for key, c in compact.items():
        if c == "link":
            return key
    for key, c in compact.items():
        if "link" in c:
            return key
    return None


def detect_roster_columns(labels: Dict[str, str], rows: Sequence[RawRow], link_sample_rows: int = 10) -> RosterColumns:
    """
    labels: row key -> header text as it appears in the roster.
    A populated 'link' column beats a 'photo' column: rosters exported from
    forms often keep an empty photo column next to the Drive links.
    """
    compact = {k: compact_text(t) for k, t in labels.items() if compact_text(t)}
    lowered = {k: norm_text(t) for k, t in labels.items()}

    id_key = _pick_roster_id(compact, lowered)
    if id_key is None:
        raise MissingRequiredColumn("roll no", list(labels.values()), _suggest(SYN["id"], labels.values()))

    photo_key = _pick_photo(compact)
    link_key = _pick_link(compact)

    if link_key is not None and link_key != photo_key:
        sample = rows[:link_sample_rows]
        filled = sum(1 for r in sample if cell_text(r.get(link_key)))
        if filled > 0:
            logger.debug("using link column %r as photo source (%d filled)", labels.get(link_key), filled)
            photo_key = link_key

    generic = [k for k, c in compact.items() if c in ROSTER_GENERIC_PHOTO and k not in (photo_key, link_key)]
    if photo_key is None and link_key is None:
        logger.warning("no photo/link column detected in roster; photos will be unavailable")

    return RosterColumns(id_key=id_key, photo_key=photo_key, link_key=link_key, generic_keys=generic)
