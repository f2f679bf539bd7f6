# Shared pytest fixtures: a marks sheet shaped like a real CT export and a roster
from __future__ import annotations
import pytest

MARKS_HEADER = {
    "A": "CANDIDATE ID",
    "B": "CANDIDATE NAME",
    "C": "GROUP",
    "D": "PHY SEC A",
    "E": "PHY INT SEC A",
    "F": "PHY",
    "G": "CHEM",
    "H": "MATHS",
    "I": "Total",
}


def _row(**vals):
    row = {k: "" for k in MARKS_HEADER}
    row.update(vals)
    return row


@pytest.fixture()
def marks_rows() -> list[dict]:
    return [
        dict(MARKS_HEADER),
        _row(A="00123", B="Bob", C="JEE - 1", D=40, E=10, F=80, G=70, H="60/100", I=210),
        _row(A="456", B="Amy", C="JEE - 1", D=30, E=5, F=75, G=75, H=60, I=210),
        _row(A="789", B="Cara", C="JEE - 2", F=90, G="AB", H=50, I=140),
        dict(MARKS_HEADER),
        _row(),
        _row(A=1011.0, B="Dev", C="JEE - 2", D=1, E=1, F="45/50", G=40, H=70, I=155),
    ]


@pytest.fixture()
def titled_marks_rows(marks_rows) -> list[dict]:
    # reader used the banner on line 1 as labels; header sits in the first values row
    title = "PCM JEE CT-1 Marks Score List"
    labels = [title] + [f"{title}__{i}" for i in range(2, len(MARKS_HEADER) + 1)]
    return [dict(zip(labels, r.values())) for r in marks_rows]


@pytest.fixture()
def roster_rows() -> list[dict]:
    return [
        {"Roll No": "00123", "Name": "Bob", "Photo": "", "Link": "https://drive.google.com/file/d/BOBID/view?usp=sharing"},
        {"Roll No": "R-456", "Name": "Amy", "Photo": "https://cdn.example.org/amy.jpg", "Link": ""},
        {"Roll No": "", "Name": "Nobody", "Photo": "https://cdn.example.org/x.jpg", "Link": ""},
        {"Roll No": "99991011", "Name": "Dev", "Photo": "", "Link": "https://example.org/dev.png"},
        {"Roll No": "555", "Name": "Eve", "Photo": "", "Link": ""},
    ]
