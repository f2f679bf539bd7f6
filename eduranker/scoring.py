from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import pandas as pd
from .cells import looks_like_mark, parse_numeric
from .errors import EmptySheet
from .models import (Candidate, CandidateRecord, ColumnMap, DetectionTrace, HeaderMatch, RawRow, Subject)
from .utils import cell_text, is_blank

logger = logging.getLogger(__name__)

# totals are compared at this precision so 0.1 + 0.2 ties with 0.3
SCORE_DECIMALS = 9


def _is_repeated_header(id_text: str) -> bool:
    return "candidate" in id_text.lower()


def extract_candidates(
    rows: Sequence[RawRow],
    column_map: ColumnMap,
    header: Optional[HeaderMatch] = None,
    trace: Optional[DetectionTrace] = None,
) -> List[Candidate]:
    """
    One Candidate per data row (rows strictly after the header). Every
    detected subject is parsed so any later subject selection can be ranked
    from the same list.
    """
    start = header.data_start if header is not None else 0
    data_rows = rows[start:]
    if trace is None:
        trace = DetectionTrace()
    trace.data_rows = len(data_rows)

    out: List[Candidate] = []
    for r in data_rows:
        id_text = cell_text(r.get(column_map.id_key))
        if not id_text:
            trace.skipped_empty_id += 1
            continue
        if _is_repeated_header(id_text):
            trace.skipped_header_repeat += 1
            continue

        scores: Dict[Subject, float] = {}
        for subj, key in column_map.subjects.items():
            raw = r.get(key)
            if not is_blank(raw) and not looks_like_mark(raw):
                trace.non_numeric_cells[subj.value] = trace.non_numeric_cells.get(subj.value, 0) + 1
            val = parse_numeric(raw)
            if val >= 0:
                scores[subj] = val
            else:
                trace.negative_marks_dropped += 1

        out.append(Candidate(candidate_id=id_text, name=cell_text(r.get(column_map.name_key)), scores=scores))

    if not out:
        raise EmptySheet("marks")
    logger.debug("extracted %d candidates from %d data rows", len(out), len(data_rows))
    return out


def normalize_subjects(subjects: Iterable) -> List[Subject]:
    # vocabulary order, duplicates and unknown labels dropped
    wanted = {Subject.parse(s) for s in subjects}
    return [s for s in Subject if s in wanted]


def _sort_score(subjects: Dict[Subject, float], total: float, included: List[Subject]) -> float:
    if len(included) == 1:
        return subjects.get(included[0], 0)
    return total


def rank_candidates(candidates: Sequence[Candidate], included_subjects: Iterable) -> List[CandidateRecord]:
    """
    Filter each candidate to the included subjects, total them, sort
    (score desc, name asc) and assign dense ranks: equal scores share a rank,
    the next distinct score gets rank + 1.

    Always pass the full candidate list: tie detection at a Top-N cutoff
    depends on every score.
    """
    included = normalize_subjects(included_subjects)
    if not candidates:
        return []

    views: List[Tuple[Dict[Subject, float], float]] = []
    for c in candidates:
        subj = {s: c.scores[s] for s in included if s in c.scores}
        views.append((subj, sum(subj.values())))

    df = pd.DataFrame({
        "pos": range(len(candidates)),
        "name": [c.name for c in candidates],
        "score": [round(float(_sort_score(v[0], v[1], included)), SCORE_DECIMALS) for v in views],
    })
    # mergesort is stable, so equal (score, name) keep sheet order
    df = df.sort_values(["score", "name"], ascending=[False, True], kind="mergesort").reset_index(drop=True)
    df["rank"] = df["score"].rank(method="dense", ascending=False).astype(int)

    ranked: List[CandidateRecord] = []
    for pos, rnk in zip(df["pos"].tolist(), df["rank"].tolist()):
        c = candidates[pos]
        subj, total = views[pos]
        ranked.append(CandidateRecord(
            candidate_id=c.candidate_id,
            name=c.name,
            subjects=subj,
            total=total,
            rank=int(rnk),
        ))
    return ranked


def rank(
    rows: Sequence[RawRow],
    column_map: ColumnMap,
    included_subjects: Iterable,
    header: Optional[HeaderMatch] = None,
) -> List[CandidateRecord]:
    return rank_candidates(extract_candidates(rows, column_map, header), included_subjects)


def top_n(records: Sequence[CandidateRecord], n: int, keep_ties: bool = False) -> List[CandidateRecord]:
    """Cut an already ranked list; keep_ties extends the cut through the last shared rank."""
    if n <= 0:
        return []
    out = list(records[:n])
    if keep_ties and out:
        last = out[-1].rank
        for r in records[n:]:
            if r.rank != last:
                break
            out.append(r)
    return out
