from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

RawRow = Mapping[str, Any]


class Subject(str, Enum):
    PHY = "PHY"
    CHEM = "CHEM"
    MATHS = "MATHS"
    BIO = "BIO"

    @property
    def full_name(self) -> str:
        return _FULL_NAMES[self]

    @property
    def aliases(self) -> Tuple[str, ...]:
        return _ALIASES[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["Subject"]:
        # "phy", "Physics", Subject.PHY -> Subject.PHY; unknown -> None
        if isinstance(value, cls):
            return value
        t = str(value or "").strip().upper()
        for s in cls:
            if t == s.value or t in s.aliases:
                return s
        return None


_FULL_NAMES = {
    Subject.PHY: "PHYSICS",
    Subject.CHEM: "CHEMISTRY",
    Subject.MATHS: "MATHS",
    Subject.BIO: "BIOLOGY",
}

_ALIASES = {
    Subject.PHY: ("PHYSICS",),
    Subject.CHEM: ("CHEMISTRY",),
    Subject.MATHS: ("MATHEMATICS", "MATH"),
    Subject.BIO: ("BIOLOGY",),
}


@dataclass(frozen=True)
class HeaderMatch:
    index: int
    row: RawRow
    # header came from the first row's keys (reader already used line 1 as labels)
    from_keys: bool = False

    @property
    def data_start(self) -> int:
        return self.index + 1


@dataclass
class ColumnMap:
    id_key: str
    name_key: str
    subjects: Dict[Subject, str] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)  # key -> header text

    @property
    def detected_subjects(self) -> List[Subject]:
        return [s for s in Subject if s in self.subjects]


@dataclass
class Candidate:
    candidate_id: str
    name: str
    scores: Dict[Subject, float] = field(default_factory=dict)


@dataclass(frozen=True)
class CandidateRecord:
    candidate_id: str
    name: str
    subjects: Mapping[Subject, float]
    total: float
    rank: int


@dataclass
class DetectionTrace:
    header_index: int = -1
    header_from_keys: bool = False
    id_column: str = ""
    name_column: str = ""
    subject_columns: Dict[str, str] = field(default_factory=dict)
    data_rows: int = 0
    skipped_empty_id: int = 0
    skipped_header_repeat: int = 0
    non_numeric_cells: Dict[str, int] = field(default_factory=dict)
    negative_marks_dropped: int = 0

    def as_rows(self) -> List[Tuple[str, Any]]:
        out: List[Tuple[str, Any]] = [
            ("header_index", self.header_index),
            ("header_from_keys", self.header_from_keys),
            ("id_column", self.id_column),
            ("name_column", self.name_column),
        ]
        for subj, col in self.subject_columns.items():
            out.append((f"subject_column[{subj}]", col))
        out += [
            ("data_rows", self.data_rows),
            ("skipped_empty_id", self.skipped_empty_id),
            ("skipped_header_repeat", self.skipped_header_repeat),
        ]
        for subj, n in self.non_numeric_cells.items():
            out.append((f"non_numeric_cells[{subj}]", n))
        out.append(("negative_marks_dropped", self.negative_marks_dropped))
        return out


@dataclass
class RosterTrace:
    id_column: str = ""
    photo_column: Optional[str] = None
    link_column: Optional[str] = None
    rows: int = 0
    rows_with_photo: int = 0
    rows_without_photo: int = 0
    keys: int = 0
    # why the roster was set aside; the leaderboard is built without photos
    rejected: str = ""

    def as_rows(self) -> List[Tuple[str, Any]]:
        if self.rejected:
            return [("roster_rejected", self.rejected)]
        return [
            ("roster_id_column", self.id_column),
            ("roster_photo_column", self.photo_column or ""),
            ("roster_link_column", self.link_column or ""),
            ("roster_rows", self.rows),
            ("roster_rows_with_photo", self.rows_with_photo),
            ("roster_rows_without_photo", self.rows_without_photo),
            ("roster_lookup_keys", self.keys),
        ]


@dataclass
class MarksImport:
    candidates: List[Candidate]
    column_map: ColumnMap
    header: HeaderMatch
    trace: DetectionTrace

    @property
    def subjects(self) -> List[Subject]:
        return self.column_map.detected_subjects


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    record: Optional[CandidateRecord]
    photo: Optional[str] = None
    initials: str = ""

    @property
    def placeholder(self) -> bool:
        return self.record is None


@dataclass
class Leaderboard:
    title: str
    subtitle: str
    heading: str
    subjects: List[Subject]
    entries: List[LeaderboardEntry]
    records: List[CandidateRecord]
    trace: DetectionTrace
    roster_trace: Optional[RosterTrace] = None
