"""Whole-file CSV reads and rewrites.

Every table is a header row followed by one record per row. Writes always
rewrite the header and all rows; the new content goes to a sibling temporary
file that replaces the original once complete.
"""

import contextlib
import csv
import os
from pathlib import Path
from typing import Iterable, Sequence

from netledger.domain.errors import StorageError


def read_rows(path: Path) -> list[list[str]]:
    """Read data rows of a CSV table, skipping the header.

    Returns an empty list when the file does not exist.

    Raises:
        StorageError: If the file exists but cannot be read or parsed
    """
    if not path.exists():
        return []
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise StorageError(f"Could not read {path}: {e}") from e
    return [row for row in rows[1:] if row and any(cell.strip() for cell in row)]


def write_rows(path: Path, header: Sequence[str], rows: Iterable[Sequence[str]]) -> None:
    """Rewrite a CSV table with ``header`` followed by ``rows``.

    Raises:
        StorageError: If the file cannot be written
    """
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        os.replace(tmp_path, path)
    except OSError as e:
        raise StorageError(f"Could not write {path}: {e}") from e
    finally:
        with contextlib.suppress(OSError):
            tmp_path.unlink(missing_ok=True)
