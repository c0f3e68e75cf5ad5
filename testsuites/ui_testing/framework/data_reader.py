"""
================================================================================
CSV Test Data Reader
================================================================================

Rows for parametrised tests. The first row of every file is a header and is
dropped; the remaining rows are returned as tuples of strings, ready for
`pytest.mark.parametrize`.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from loguru import logger


class TestDataError(Exception):
    """Raised when a test data file cannot be read."""
    __test__ = False


def _read_rows(file_path: Union[str, Path]) -> List[List[str]]:
    path = Path(file_path)
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            rows = [row for row in csv.reader(f)]
    except (OSError, csv.Error) as e:
        raise TestDataError(f"Failed to read CSV file: {path}") from e

    # Header row
    if rows:
        rows.pop(0)
    return rows


def read_csv_data(file_path: Union[str, Path]) -> List[Tuple[str, ...]]:
    """
    Read every data row of a CSV file.

    Args:
        file_path: Path to the CSV file

    Returns:
        One tuple per data row

    Raises:
        TestDataError: the file is missing or malformed
    """
    data = [tuple(row) for row in _read_rows(file_path)]
    logger.debug(f"Loaded {len(data)} row(s) from {file_path}")
    return data


def read_csv_columns(
    file_path: Union[str, Path],
    *column_indices: int,
) -> List[Tuple[str, ...]]:
    """
    Read selected columns (0-based) of a CSV file.

    Columns a row does not have are returned as "".

    Example:
        >>> read_csv_columns("testdata/search_terms.csv", 0)
        [('wireless mouse',), ('laptop stand',)]
    """
    data = []
    for row in _read_rows(file_path):
        data.append(tuple(
            row[index] if index < len(row) else ""
            for index in column_indices
        ))
    logger.debug(f"Loaded {len(data)} row(s), columns {list(column_indices)} from {file_path}")
    return data


def format_rows(data: Sequence[Sequence[str]]) -> str:
    """Render rows as `Row n: a | b |` lines for debugging."""
    lines = ["CSV Data:"]
    for number, row in enumerate(data, start=1):
        lines.append(f"Row {number}: " + "".join(f"{value} | " for value in row))
    return "\n".join(lines)


__all__ = [
    "TestDataError",
    "read_csv_data",
    "read_csv_columns",
    "format_rows",
]
