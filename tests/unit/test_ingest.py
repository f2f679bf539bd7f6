from __future__ import annotations
from io import BytesIO
import pytest
from openpyxl import Workbook
from eduranker.ingest import load_path, load_table, matrix_to_rows

TITLE = "PCM JEE CT-1 Marks Score List"


def _xlsx_bytes(lines, merge=None, sheet_title="Marks"):
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    for line in lines:
        ws.append(line)
    if merge:
        ws.merge_cells(merge)
    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


@pytest.fixture()
def titled_xlsx():
    return _xlsx_bytes([
        [TITLE],
        ["Candidate ID", "Candidate Name", "PHY", "CHEM"],
        ["00123", "Bob", 80, 70],
        [None, None, None, None],
        [456, "Amy", 75, "45/50"],
    ], merge="A1:D1")


def test_xlsx_with_merged_title(titled_xlsx):
    table = load_table("ct1.xlsx", titled_xlsx)
    assert table.sheet_name == "Marks"
    assert table.heading == TITLE
    # merged banner is spread over every column it covers
    assert list(table.rows[0].keys()) == [TITLE, f"{TITLE}__2", f"{TITLE}__3", f"{TITLE}__4"]
    assert list(table.rows[0].values()) == ["Candidate ID", "Candidate Name", "PHY", "CHEM"]
    assert len(table.rows) == 3
    assert table.rows[2][TITLE] == 456


def test_xlsx_header_on_first_line():
    data = _xlsx_bytes([["Candidate ID", "Candidate Name", "PHY"], ["1", "Bob", 9]])
    table = load_table("plain.xlsx", data)
    assert table.heading == ""
    assert table.rows == [{"Candidate ID": "1", "Candidate Name": "Bob", "PHY": 9}]


def test_named_sheet():
    wb = Workbook()
    wb.active.append(["ignored"])
    ws = wb.create_sheet("Roster")
    ws.append(["Roll No", "Photo"])
    ws.append(["42", "p.jpg"])
    bio = BytesIO()
    wb.save(bio)
    table = load_table("book.xlsx", bio.getvalue(), sheet="Roster")
    assert table.sheet_name == "Roster"
    assert table.rows == [{"Roll No": "42", "Photo": "p.jpg"}]


def test_csv_with_title_line():
    data = (
        "Weekly Test Results\n"
        "Candidate ID,Candidate Name,PHY,CHEM\n"
        "1,Bob,80,70\n"
        "\n"
        "2,Amy,75,90\n"
    ).encode("utf-8")
    table = load_table("marks.csv", data)
    assert table.sheet_name == "CSV"
    assert table.heading == "Weekly Test Results"
    assert list(table.rows[0].keys()) == ["Weekly Test Results", "col_2", "col_3", "col_4"]
    assert table.rows[0]["col_2"] == "Candidate Name"
    assert len(table.rows) == 3


def test_csv_semicolon_with_bom():
    data = "\ufeffCandidate ID;Candidate Name;PHY\n1;Bob;80\n2;Amy;90\n".encode("utf-8")
    table = load_table("marks.CSV", data)
    assert table.heading == ""
    assert table.rows[0] == {"Candidate ID": "1", "Candidate Name": "Bob", "PHY": "80"}


def test_csv_cp1252():
    data = "Roll No,Name\n7,Ren\xe9e\n".encode("cp1252")
    table = load_table("r.csv", data)
    assert table.rows == [{"Roll No": "7", "Name": "Ren\xe9e"}]


def test_matrix_to_rows():
    rows = matrix_to_rows([["a", "", "a"], [1, None], [None, None, None], [2, 3, 4]])
    assert rows == [
        {"a": 1, "col_2": "", "a__2": ""},
        {"a": 2, "col_2": 3, "a__2": 4},
    ]
    assert matrix_to_rows([]) == []


def test_load_path(tmp_path, titled_xlsx):
    p = tmp_path / "ct1.xlsx"
    p.write_bytes(titled_xlsx)
    table = load_path(p)
    assert table.source_name == "ct1.xlsx"
    assert table.heading == TITLE
