"""
Exam result leaderboards from loosely structured spreadsheets:
- reading marks/roster sheets (CSV/XLSX)
- locating the header row and mapping id / name / subject columns
- parsing marks, totals and dense ranking
- joining ranked candidates to roster photos by fuzzy id matching
- leaderboard model and Excel export
"""
import logging

from .cells import parse_numeric, looks_like_mark
from .config import Settings, load_settings
from .entity import build_lookup, resolve_photo, normalize_photo, id_variants
from .errors import ImportRejected, HeaderNotFound, MissingRequiredColumn, EmptySheet
from .export import export_to_excel_bytes
from .header_detect import locate_header, extract_heading
from .infer import map_columns
from .ingest import load_table, load_path
from .leaderboard import build_leaderboard, build_from_import, import_marks, compose_title, compose_subtitle
from .models import Subject, CandidateRecord, ColumnMap, Leaderboard, LeaderboardEntry
from .scoring import rank, rank_candidates, top_n

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "parse_numeric",
    "looks_like_mark",
    "Settings",
    "load_settings",
    "build_lookup",
    "resolve_photo",
    "normalize_photo",
    "id_variants",
    "ImportRejected",
    "HeaderNotFound",
    "MissingRequiredColumn",
    "EmptySheet",
    "export_to_excel_bytes",
    "locate_header",
    "extract_heading",
    "map_columns",
    "load_table",
    "load_path",
    "build_leaderboard",
    "build_from_import",
    "import_marks",
    "compose_title",
    "compose_subtitle",
    "Subject",
    "CandidateRecord",
    "ColumnMap",
    "Leaderboard",
    "LeaderboardEntry",
    "rank",
    "rank_candidates",
    "top_n",
]
