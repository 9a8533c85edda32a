"""
Workbook reader for transaction imports.

Stages an uploaded spreadsheet in a temporary file, decodes the first
sheet with pandas and returns its rows as plain dicts keyed by the
original header labels. Supports:
- .xlsx (openpyxl)
- .xls (xlrd)
- .csv (UTF-8, with a cp1252 fallback for files saved by older Excel)

The format is sniffed from the file contents, not the declared MIME type,
because browsers routinely label CSV uploads as application/vnd.ms-excel.
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = int(os.environ.get("PFMS_MAX_UPLOAD_BYTES", 10 * 1024 * 1024))
UPLOAD_DIR = os.environ.get("PFMS_UPLOAD_DIR") or None  # None = system temp dir

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_MIME = "application/vnd.ms-excel"
CSV_MIME = "text/csv"

ALLOWED_MIME_TYPES = {XLSX_MIME, XLS_MIME, CSV_MIME}
# Generic types some clients send; accepted only with a spreadsheet extension.
GENERIC_MIME_TYPES = {"application/octet-stream", "application/csv", "text/plain", ""}
SPREADSHEET_EXTENSIONS = {".xlsx", ".xls", ".csv"}

ZIP_SIGNATURE = b"PK\x03\x04"
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


class FormatError(Exception):
    """The upload as a whole cannot be imported. Nothing has been written."""

    MESSAGES = {
        "missing": "No file uploaded",
        "too_large": "File exceeds the upload size limit",
        "unsupported_type": "Only Excel and CSV files allowed",
        "empty": "Excel file is empty",
        "unreadable": "Could not read the spreadsheet",
        "changed": "File differs from the previewed upload. Preview it again before importing.",
    }

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        self.message = message or self.MESSAGES.get(reason, reason)
        super().__init__(self.message)


@dataclass
class Workbook:
    headers: list[str]
    rows: list[dict] = field(default_factory=list)
    # 0-based data row position in the file for each entry of rows; blank rows leave gaps.
    positions: list[int] = field(default_factory=list)

    def numbered_rows(self) -> Iterator[tuple[int, dict]]:
        if self.positions:
            return zip(self.positions, self.rows)
        return enumerate(self.rows)


def check_upload(filename: Optional[str], content_type: Optional[str], content: bytes) -> None:
    """Reject uploads that are missing, oversized, or not a spreadsheet."""
    if not filename:
        raise FormatError("missing")
    if len(content) > MAX_UPLOAD_BYTES:
        limit_mb = MAX_UPLOAD_BYTES / (1024 * 1024)
        raise FormatError("too_large", f"File exceeds the {limit_mb:g} MB upload limit")

    mime = (content_type or "").split(";")[0].strip().lower()
    extension = Path(filename).suffix.lower()
    if mime in ALLOWED_MIME_TYPES:
        return
    if mime in GENERIC_MIME_TYPES and extension in SPREADSHEET_EXTENSIONS:
        return
    raise FormatError("unsupported_type")


@contextmanager
def staged_upload(content: bytes, suffix: str = "") -> Iterator[Path]:
    """Write the upload to a temporary file and delete it on exit, whatever happens."""
    if UPLOAD_DIR:
        Path(UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix="pfms-import-", suffix=suffix, dir=UPLOAD_DIR)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug(f"Removed staged upload {path.name}")


def read_workbook(path: Path) -> Workbook:
    """Read the first sheet of a spreadsheet file into header-keyed rows."""
    try:
        df = _load_dataframe(path)
    except pd.errors.EmptyDataError:
        raise FormatError("empty")
    except FormatError:
        raise
    except Exception as e:
        logger.warning(f"Unreadable upload {path.name}: {e}")
        raise FormatError("unreadable", f"Could not read the spreadsheet: {e}")

    # Spreadsheet tools leave fully blank rows behind; they are not data.
    df = df.dropna(how="all")
    if df.empty:
        raise FormatError("empty")

    headers = _unique_headers(df.columns)
    rows = [
        {header: _clean_cell(value) for header, value in zip(headers, record)}
        for record in df.itertuples(index=False, name=None)
    ]
    return Workbook(headers=headers, rows=rows, positions=[int(label) for label in df.index])


def _unique_headers(columns) -> list[str]:
    """Strip header labels, suffixing any that collide the way pandas does ("Amount.1")."""
    headers = []
    seen = set()
    for column in columns:
        header = base = str(column).strip()
        suffix = 0
        while header in seen:
            suffix += 1
            header = f"{base}.{suffix}"
        seen.add(header)
        headers.append(header)
    return headers


def _load_dataframe(path: Path) -> pd.DataFrame:
    with open(path, "rb") as fh:
        signature = fh.read(8)

    # Keep literal "NA"/"null" text as text; only truly empty cells are missing.
    na_options = {"keep_default_na": False, "na_values": [""]}

    if signature.startswith(ZIP_SIGNATURE):
        return pd.read_excel(path, sheet_name=0, engine="openpyxl", **na_options)
    if signature.startswith(OLE2_SIGNATURE):
        return pd.read_excel(path, sheet_name=0, engine="xlrd", **na_options)

    # Blank lines stay in as empty rows so row positions match the file.
    csv_options = {"skipinitialspace": True, "skip_blank_lines": False, **na_options}
    try:
        return pd.read_csv(path, encoding="utf-8-sig", **csv_options)
    except UnicodeDecodeError:
        logger.info(f"{path.name} is not UTF-8, retrying as cp1252")
        return pd.read_csv(path, encoding="cp1252", **csv_options)


def _clean_cell(value):
    """Convert a pandas cell into a plain Python value (None for empty)."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if pd.isna(value):  # NaN and NaT
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, np.generic):
        return value.item()
    return value
