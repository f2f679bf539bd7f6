from __future__ import annotations
import csv
import logging
from dataclasses import dataclass, field
from io import BytesIO, StringIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
from zipfile import BadZipFile
import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from .header_detect import extract_heading, is_header_line
from .utils import cell_text, is_blank

logger = logging.getLogger(__name__)


@dataclass
class SheetTable:
    source_name: str
    sheet_name: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    heading: str = ""
# =========================

# Excel: sheet as a matrix, merged cells unfolded
# =========================
def _sheet_to_matrix_with_merged(ws) -> Tuple[List[List[Any]], List[int]]:
    """
    (matrix, 0-based columns where a merged range starts on line 1).
    Every cell covered by a merged range gets the range's top-left value, so a
    banner merged across A1:M1 reads the same from any column.
    """
    merged_map = {}
    first_line_starts = []
    for r in ws.merged_cells.ranges:
        min_col, min_row, max_col, max_row = r.bounds
        top_val = ws.cell(min_row, min_col).value
        if min_row == 1:
            first_line_starts.append(min_col - 1)
        for rr in range(min_row, max_row + 1):
            for cc in range(min_col, max_col + 1):
                merged_map[(rr, cc)] = top_val

    rows = []
    for r in range(1, ws.max_row + 1):
        row_vals = []
        for c in range(1, ws.max_column + 1):
            v = ws.cell(r, c).value
            if (r, c) in merged_map and is_blank(v):
                v = merged_map[(r, c)]
            row_vals.append(v)
        rows.append(row_vals)
    return rows, first_line_starts
# =========================

# CSV: tolerant read from bytes
# =========================
def _guess_delimiter(sample_text: str) -> str:
    # ',' from en-US exports, ';' from European locales, sometimes tabs
    try:
        dialect = csv.Sniffer().sniff(sample_text, delimiters=";,\t|")
        if dialect.delimiter:
            return dialect.delimiter
    except csv.Error:
        pass

    candidates = [";", ",", "\t", "|"]
    lines = [ln for ln in sample_text.splitlines() if ln.strip()][:20]
    if not lines:
        return ","
    scores = {d: sum(ln.count(d) for ln in lines) / len(lines) for d in candidates}
    best = max(scores.items(), key=lambda x: x[1])[0]
    return best if scores[best] > 0 else ","


def _decode(data: bytes) -> str:
    for enc in ["utf-8-sig", "cp1252"]:
        try:
            return data.decode(enc)
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace")


def _read_csv_bytes(data: bytes) -> List[List[Any]]:
    # lines keep their own width: a one-cell title line sits above the header row
    text = _decode(data)
    delim = _guess_delimiter(text[:65536])
    return [line for line in csv.reader(StringIO(text), delimiter=delim) if any(c.strip() for c in line)]
# =========================

# Matrix -> RawRows
# =========================
def _make_unique(labels: Sequence[str]) -> List[str]:
    seen: Dict[str, int] = {}
    out = []
    for i, lab in enumerate(labels):
        base = lab or f"col_{i + 1}"
        n = seen.get(base, 0) + 1
        seen[base] = n
        out.append(base if n == 1 else f"{base}__{n}")
    return out


def matrix_to_rows(matrix: Sequence[Sequence[Any]]) -> List[Dict[str, Any]]:
    """
    First line -> column labels, remaining lines -> RawRows ({label: value}).
    Fully empty lines are dropped; empty cells read as "".
    """
    if not matrix:
        return []
    width = max(len(r) for r in matrix)
    labels = _make_unique([cell_text(v) for v in list(matrix[0]) + [None] * (width - len(matrix[0]))])

    rows: List[Dict[str, Any]] = []
    for line in matrix[1:]:
        vals = list(line) + [None] * (width - len(line))
        if all(is_blank(v) for v in vals):
            continue
        rows.append({lab: ("" if is_blank(v) else v) for lab, v in zip(labels, vals)})
    return rows
# =========================

# Main: upload -> table
# =========================
def _load_excel(data: bytes, sheet: Optional[str]) -> Tuple[str, List[List[Any]], List[int]]:
    try:
        wb = load_workbook(BytesIO(data), read_only=False, data_only=True)
    except (InvalidFileException, BadZipFile):
        # legacy .xls; needs pandas' xlrd engine
        xls = pd.ExcelFile(BytesIO(data))
        name = sheet or xls.sheet_names[0]
        df = xls.parse(name, header=None)
        return str(name), df.astype(object).where(df.notna(), None).values.tolist(), []

    name = sheet or wb.sheetnames[0]
    matrix, starts = _sheet_to_matrix_with_merged(wb[name])
    return name, matrix, starts


def load_table(name: str, data: bytes, sheet: Optional[str] = None) -> SheetTable:
    """
    Spreadsheet upload -> SheetTable with RawRows and the line-1 heading.
    CSV files read as a single 'CSV' sheet; workbooks use the first sheet
    unless one is named.
    """
    if name.lower().endswith(".csv"):
        sheet_name, matrix, starts = "CSV", _read_csv_bytes(data), []
    else:
        sheet_name, matrix, starts = _load_excel(data, sheet)

    heading = ""
    if matrix and not is_header_line(matrix[0]):
        heading = extract_heading(matrix[0], starts)
    rows = matrix_to_rows(matrix)
    logger.debug("%s[%s]: %d rows, heading=%r", name, sheet_name, len(rows), heading)
    return SheetTable(source_name=name, sheet_name=sheet_name, rows=rows, heading=heading)


def load_path(path: Path, sheet: Optional[str] = None) -> SheetTable:
    p = Path(path)
    return load_table(p.name, p.read_bytes(), sheet=sheet)
