from __future__ import annotations
import logging
import pytest
from eduranker.errors import ImportRejected, MissingRequiredColumn
from eduranker.infer import detect_roster_columns, map_columns, normalize_header
from eduranker.models import Subject


def test_map_columns_on_ct_header(marks_rows):
    cmap = map_columns(marks_rows[0])
    assert cmap.id_key == "A"
    assert cmap.name_key == "B"
    assert cmap.subjects == {Subject.PHY: "F", Subject.CHEM: "G", Subject.MATHS: "H"}
    assert cmap.detected_subjects == [Subject.PHY, Subject.CHEM, Subject.MATHS]
    assert cmap.labels["A"] == "candidate id"


def test_sub_score_decoys_are_not_subjects():
    cmap = map_columns({"A": "Candidate ID", "B": "Candidate Name", "C": "PHY SEC A", "D": "PHY INT SEC A"})
    assert Subject.PHY not in cmap.subjects


def test_exact_subject_wins_over_prefix():
    cmap = map_columns({
        "A": "Roll No",
        "B": "Student Name",
        "C": "PHYSICS (Paper 2)",
        "D": "PHY TOTAL",
        "E": "Chemistry",
        "F": "Mathematics",
        "G": "Biology Marks",
    })
    assert cmap.subjects[Subject.PHY] == "D"
    assert cmap.subjects[Subject.CHEM] == "E"
    assert cmap.subjects[Subject.MATHS] == "F"
    # no exact form, falls back to the prefix match
    assert cmap.subjects[Subject.BIO] == "G"


def test_header_text_is_normalised():
    cols = normalize_header({"A": "  Candidate ID ", "B": '"Candidate  Name"', "C": "", "D": "candidate id"})
    assert cols == {"candidate id": "A", "candidate name": "B"}


def test_missing_id_column():
    with pytest.raises(MissingRequiredColumn) as ei:
        map_columns({"A": "Candidate No", "B": "Candidate Name", "C": "PHY"})
    err = ei.value
    assert isinstance(err, ImportRejected)
    assert err.role == "candidate id"
    assert "candidate no" in err.headers
    assert err.suggestion is not None
    assert "closest header" in str(err)


def test_missing_name_column():
    with pytest.raises(MissingRequiredColumn) as ei:
        map_columns({"A": "Candidate ID", "B": "PHY", "C": "CHEM"})
    assert ei.value.role == "candidate name"


def test_subjects_are_optional():
    cmap = map_columns({"A": "Candidate ID", "B": "Candidate Name", "C": "Remarks"})
    assert cmap.subjects == {}


# roster

ROSTER_LABELS = {"Roll No": "Roll No", "Name": "Name", "Photo": "Photo", "Link": "Link"}


def test_populated_link_column_beats_photo(roster_rows):
    cols = detect_roster_columns(ROSTER_LABELS, roster_rows)
    assert cols.id_key == "Roll No"
    assert cols.photo_key == "Link"
    assert cols.link_key == "Link"
    assert list(cols.generic_keys) == ["Photo"]


def test_empty_link_column_keeps_photo(roster_rows):
    rows = [dict(r, Link="") for r in roster_rows]
    cols = detect_roster_columns(ROSTER_LABELS, rows)
    assert cols.photo_key == "Photo"


def test_link_only_checked_in_sample(roster_rows):
    rows = [dict(r, Link="") for r in roster_rows] + [{"Roll No": "9", "Link": "https://x.org/9.jpg"}]
    cols = detect_roster_columns(ROSTER_LABELS, rows, link_sample_rows=len(roster_rows))
    assert cols.photo_key == "Photo"


def test_roster_id_variants():
    assert detect_roster_columns({"a": "Candidate Id", "b": "Image"}, []).id_key == "a"
    assert detect_roster_columns({"a": "Name", "b": "Roll Number"}, []).id_key == "b"
    assert detect_roster_columns({"a": "Cand ID", "b": "Photo"}, []).id_key == "a"


def test_roster_without_id_column():
    with pytest.raises(MissingRequiredColumn) as ei:
        detect_roster_columns({"a": "Name", "b": "Photo"}, [])
    assert ei.value.role == "roll no"


def test_roster_without_photo_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="eduranker.infer"):
        cols = detect_roster_columns({"a": "Roll No", "b": "Name"}, [])
    assert cols.photo_key is None and cols.link_key is None
    assert "no photo/link column" in caplog.text
