from pathlib import Path

import pytest

from testsuites.ui_testing.framework.data_reader import (
    TestDataError,
    format_rows,
    read_csv_columns,
    read_csv_data,
)


SEARCH_CSV = Path(__file__).resolve().parents[1] / "ui_testing" / "testdata" / "search_terms.csv"


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text(
        "searchTerm,resultIndex,note\n"
        "wireless mouse,2,first\n"
        "\"desk lamp, led\",1\n",
        encoding="utf-8",
    )
    return path


def test_header_row_is_dropped(csv_file):
    assert read_csv_data(csv_file) == [
        ("wireless mouse", "2", "first"),
        ("desk lamp, led", "1"),
    ]


def test_selected_columns_pad_missing_values(csv_file):
    assert read_csv_columns(csv_file, 0, 2) == [
        ("wireless mouse", "first"),
        ("desk lamp, led", ""),
    ]


def test_header_only_file_has_no_rows(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("searchTerm,resultIndex\n", encoding="utf-8")
    assert read_csv_data(path) == []


def test_missing_file_raises(tmp_path):
    with pytest.raises(TestDataError):
        read_csv_data(tmp_path / "absent.csv")


def test_bundled_search_terms_are_usable():
    rows = read_csv_data(SEARCH_CSV)
    assert rows
    for term, index in rows:
        assert term.strip()
        assert int(index) >= 0


def test_format_rows():
    assert format_rows([("a", "1")]) == "CSV Data:\nRow 1: a | 1 | "
