from __future__ import annotations
import logging
from typing import Any, Iterable, List, Optional, Sequence
from .config import Settings
from .entity import PhotoLookup, build_lookup, resolve_photo
from .errors import ImportRejected
from .header_detect import first_line_heading, locate_header
from .infer import map_columns
from .models import (CandidateRecord, DetectionTrace, Leaderboard, LeaderboardEntry, MarksImport, RawRow,
                     RosterTrace, Subject)
from .scoring import extract_candidates, normalize_subjects, rank_candidates, top_n as cut_top_n

logger = logging.getLogger(__name__)

COMBO_ABBREV = {
    frozenset({Subject.PHY, Subject.CHEM, Subject.MATHS}): "PCM",
    frozenset({Subject.PHY, Subject.CHEM, Subject.BIO}): "PCB",
    frozenset(Subject): "PCMB",
}


def import_marks(rows: Sequence[RawRow], settings: Optional[Settings] = None) -> MarksImport:
    """
    Locate the header, map the columns and extract every candidate.
    Raises HeaderNotFound / MissingRequiredColumn / EmptySheet.
    """
    settings = settings or Settings()
    header = locate_header(rows, max_scan_rows=settings.header_scan_rows)
    cmap = map_columns(header.row)

    trace = DetectionTrace(
        header_index=header.index,
        header_from_keys=header.from_keys,
        id_column=cmap.labels.get(cmap.id_key, ""),
        name_column=cmap.labels.get(cmap.name_key, ""),
        subject_columns={s.value: cmap.labels.get(k, "") for s, k in cmap.subjects.items()},
    )
    candidates = extract_candidates(rows, cmap, header, trace)
    return MarksImport(candidates=candidates, column_map=cmap, header=header, trace=trace)


def compose_title(subjects: Sequence[Subject], standard: Optional[str] = None, batch: Optional[str] = None) -> str:
    """
    "12TH JEE PCM TOPPERS", "11TH PCB PCB PHY+CHEM+BIO TOPPERS" (NEET),
    "PHYSICS TOPPERS", "TOPPERS LIST".
    """
    subs = normalize_subjects(subjects)
    prefix = f"{standard.upper()} " if standard else ""
    neet = bool(batch) and batch.strip().lower() == "neet"
    if batch:
        prefix += "PCB " if neet else f"{batch.upper()} "

    combo = COMBO_ABBREV.get(frozenset(subs), "") if len(subs) >= 3 else ""
    if neet:
        part = f"{combo} " if combo else ""
        part += "+".join(s.value for s in subs)
    elif combo:
        part = combo
    elif len(subs) == 1:
        part = subs[0].full_name
    else:
        part = " + ".join(s.value for s in subs)

    if part:
        return f"{prefix}{part} TOPPERS"
    return f"{prefix}TOPPERS LIST"


def compose_subtitle(test_type: Optional[str] = None, total_marks: Any = None, heading: str = "") -> str:
    subtitle = ""
    if test_type:
        subtitle = f"{test_type[:1].upper()}{test_type[1:]} Test"
    if total_marks:
        if subtitle:
            subtitle += "    "
        subtitle += f"Total Marks: {total_marks}"
    return subtitle or heading


def initials(name: str) -> str:
    parts = [p for p in str(name or "").split() if p[:1].isalnum()]
    if not parts:
        return "?"
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def _entries(
    records: Sequence[CandidateRecord],
    lookup: Optional[PhotoLookup],
    settings: Settings,
    limit: int,
    pad: bool,
) -> List[LeaderboardEntry]:
    out: List[LeaderboardEntry] = []
    for rec in records:
        photo = None
        if lookup:
            photo = resolve_photo(lookup, rec.candidate_id,
                                  pad_width=settings.id_pad_width, suffix_digits=settings.suffix_digits)
        out.append(LeaderboardEntry(rank=rec.rank, record=rec, photo=photo, initials=initials(rec.name)))

    if pad:
        next_rank = (out[-1].rank if out else 0) + 1
        while len(out) < limit:
            out.append(LeaderboardEntry(rank=next_rank, record=None, initials=""))
            next_rank += 1
    return out


def build_from_import(
    marks: MarksImport,
    lookup: Optional[PhotoLookup] = None,
    *,
    included_subjects: Optional[Iterable] = None,
    top_n: Optional[int] = None,
    keep_ties: bool = False,
    pad: bool = False,
    heading: str = "",
    standard: Optional[str] = None,
    batch: Optional[str] = None,
    test_type: Optional[str] = None,
    total_marks: Any = None,
    roster_trace: Optional[RosterTrace] = None,
    settings: Optional[Settings] = None,
) -> Leaderboard:
    """
    Rank the full imported set for the chosen subjects, then cut to top_n.
    Toggling subjects means calling this again with the same MarksImport.
    """
    settings = settings or Settings()
    limit = top_n if top_n is not None else settings.top_n
    detected = marks.subjects
    if included_subjects is None:
        subjects = detected
    else:
        subjects = [s for s in normalize_subjects(included_subjects) if s in detected]

    records = rank_candidates(marks.candidates, subjects)
    if not subjects:
        logger.warning("no subject columns selected; every candidate totals 0")

    entries = _entries(cut_top_n(records, limit, keep_ties=keep_ties), lookup, settings, limit, pad)
    return Leaderboard(
        title=compose_title(subjects, standard, batch),
        subtitle=compose_subtitle(test_type, total_marks, heading),
        heading=heading,
        subjects=subjects,
        entries=entries,
        records=records,
        trace=marks.trace,
        roster_trace=roster_trace,
    )


def build_leaderboard(
    marks_rows: Sequence[RawRow],
    roster_rows: Optional[Sequence[RawRow]] = None,
    *,
    heading: Optional[str] = None,
    included_subjects: Optional[Iterable] = None,
    top_n: Optional[int] = None,
    keep_ties: bool = False,
    pad: bool = False,
    standard: Optional[str] = None,
    batch: Optional[str] = None,
    test_type: Optional[str] = None,
    total_marks: Any = None,
    settings: Optional[Settings] = None,
) -> Leaderboard:
    """
    Marks rows (+ optional roster rows) -> Leaderboard.

    A missing, rejected or photo-less roster is not an error: entries
    simply carry photo=None and the renderer shows initials.
    """
    settings = settings or Settings()
    marks = import_marks(marks_rows, settings)
    if heading is None:
        heading = first_line_heading(marks_rows, marks.header)

    lookup = None
    roster_trace = None
    if roster_rows:
        try:
            lookup, roster_trace = build_lookup(
                roster_rows,
                pad_width=settings.id_pad_width,
                base64_min_length=settings.base64_min_length,
                link_sample_rows=settings.link_sample_rows,
                header_scan_rows=settings.header_scan_rows,
            )
        except ImportRejected as err:
            # only the roster is rejected; marks still rank, photos fall back to initials
            logger.warning("roster rejected, continuing without photos: %s", err)
            roster_trace = RosterTrace(rejected=str(err))

    return build_from_import(
        marks,
        lookup,
        included_subjects=included_subjects,
        top_n=top_n,
        keep_ties=keep_ties,
        pad=pad,
        heading=heading,
        standard=standard,
        batch=batch,
        test_type=test_type,
        total_marks=total_marks,
        roster_trace=roster_trace,
        settings=settings,
    )
