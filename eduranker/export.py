from __future__ import annotations
from io import BytesIO
from typing import List
import pandas as pd
from .models import Leaderboard, Subject

TOPPERS_SHEET = "Toppers"
RANKING_SHEET = "Ranking"
DETECTION_SHEET = "Detection"


def _subject_headers(subjects: List[Subject]) -> List[str]:
    return [s.value for s in subjects]


def toppers_frame(board: Leaderboard) -> pd.DataFrame:
    rows = []
    for e in board.entries:
        rec = e.record
        row = {
            "Rank": e.rank,
            "Candidate ID": rec.candidate_id if rec else "",
            "Name": rec.name if rec else "-",
        }
        for s in board.subjects:
            row[s.value] = rec.subjects.get(s) if rec else None
        row["Total"] = rec.total if rec else None
        row["Photo"] = e.photo or ""
        rows.append(row)
    cols = ["Rank", "Candidate ID", "Name"] + _subject_headers(board.subjects) + ["Total", "Photo"]
    return pd.DataFrame(rows, columns=cols)


def ranking_frame(board: Leaderboard) -> pd.DataFrame:
    rows = []
    for rec in board.records:
        row = {"Rank": rec.rank, "Candidate ID": rec.candidate_id, "Name": rec.name}
        for s in board.subjects:
            row[s.value] = rec.subjects.get(s)
        row["Total"] = rec.total
        rows.append(row)
    cols = ["Rank", "Candidate ID", "Name"] + _subject_headers(board.subjects) + ["Total"]
    return pd.DataFrame(rows, columns=cols)


def detection_frame(board: Leaderboard) -> pd.DataFrame:
    items = board.trace.as_rows()
    if board.roster_trace is not None:
        items += board.roster_trace.as_rows()
    return pd.DataFrame([{"Key": k, "Value": str(v)} for k, v in items], columns=["Key", "Value"])


def export_to_excel_bytes(board: Leaderboard) -> bytes:
    """
    Workbook with the leaderboard (title + subtitle above the table), the full
    ranking and the detection trace.
    """
    toppers_df = toppers_frame(board)
    ranking_df = ranking_frame(board)
    detection_df = detection_frame(board)
    bio = BytesIO()

    with pd.ExcelWriter(bio, engine="xlsxwriter") as writer:
        # two banner lines above the toppers table
        toppers_df.to_excel(writer, index=False, sheet_name=TOPPERS_SHEET, startrow=2)
        ranking_df.to_excel(writer, index=False, sheet_name=RANKING_SHEET)
        detection_df.to_excel(writer, index=False, sheet_name=DETECTION_SHEET)

        wb = writer.book
        fmt_header = wb.add_format({"bold": True, "bg_color": "#F2F2F2", "border": 1, "valign": "vcenter"})
        fmt_title = wb.add_format({"bold": True, "font_size": 16, "bg_color": "#E8F0FE", "border": 1, "valign": "vcenter"})
        fmt_subtitle = wb.add_format({"italic": True, "font_color": "#555555"})
        fmt_num = wb.add_format({"num_format": "0.##"})

        def format_df_sheet(sheet_name: str, df: pd.DataFrame, header_row: int = 0,
                            default_width: int = 12, max_width: int = 48):
            ws = writer.sheets.get(sheet_name)
            if ws is None:
                return
            ws.freeze_panes(header_row + 1, 0)
            ws.autofilter(header_row, 0, header_row + max(1, len(df)), max(0, len(df.columns) - 1))
            for col, name in enumerate(df.columns):
                ws.write(header_row, col, name, fmt_header)
                w = max(10, min(max_width, int(len(str(name)) * 1.2) + 6))
                is_num = name in ("Rank", "Total") or Subject.parse(name) is not None
                ws.set_column(col, col, max(default_width, w), fmt_num if is_num else None)

        format_df_sheet(TOPPERS_SHEET, toppers_df, header_row=2)
        format_df_sheet(RANKING_SHEET, ranking_df)
        format_df_sheet(DETECTION_SHEET, detection_df, default_width=28)

        ws = writer.sheets[TOPPERS_SHEET]
        last_col = max(0, len(toppers_df.columns) - 1)
        if last_col > 0:
            ws.merge_range(0, 0, 0, last_col, board.title, fmt_title)
        else:
            ws.write(0, 0, board.title, fmt_title)
        ws.set_row(0, 28)
        if board.subtitle:
            ws.write(1, 0, board.subtitle, fmt_subtitle)
        name_col = list(toppers_df.columns).index("Name")
        ws.set_column(name_col, name_col, 30)

    return bio.getvalue()
