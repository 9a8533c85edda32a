"""
Bulk transaction import: preview and commit.

Preview reads the upload and reports its headers, column mapping and a
sample of rows without validating or writing anything.

Commit reads the (resubmitted) upload and processes rows one at a time in
file order: validate -> resolve account/category -> insert -> commit. A bad
row is recorded and skipped; it never stops the rows after it. There is no
file-wide transaction, so rows committed before a crash stay committed.

Rows must stay sequential: the entity resolver's get-or-create relies on
each row seeing the accounts/categories created by the rows before it.
"""

import enum
import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Transaction
from .column_normalizer import ColumnMapping, map_columns
from .entity_resolver import EntityResolver, ResolvedRow
from .import_result import FIRST_DATA_ROW, ImportResult
from .row_validator import InvalidRow, validate_row
from .workbook_reader import FormatError, Workbook, check_upload, read_workbook, staged_upload

logger = logging.getLogger(__name__)

PREVIEW_ROWS = int(os.environ.get("PFMS_PREVIEW_ROWS", 10))


class ImportState(str, enum.Enum):
    IDLE = "idle"
    READING = "reading"
    NORMALIZING = "normalizing"
    VALIDATING = "validating"
    RESOLVING = "resolving"
    PERSISTING = "persisting"
    REPORTED = "reported"
    ABORTED = "aborted"


@dataclass
class UploadedFile:
    filename: Optional[str]
    content_type: Optional[str]
    content: bytes = b""

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.content).hexdigest()

    @property
    def suffix(self) -> str:
        return Path(self.filename or "").suffix.lower()


@dataclass
class ImportPreview:
    total_rows: int
    columns: list
    rows: list
    mapping: ColumnMapping
    file_hash: str = ""

    def to_response(self) -> dict:
        return {
            "success": True,
            "totalRows": self.total_rows,
            "columns": self.columns,
            "preview": self.rows,
            "mapping": self.mapping.fields,
            "ignoredColumns": self.mapping.ignored,
            "unmappedColumns": self.mapping.unmapped,
            "missingFields": self.mapping.missing,
            "fileHash": self.file_hash,
            "message": "Preview loaded successfully",
        }


class ImportExecutor:
    """Runs one preview or commit for one upload. Not reusable across uploads."""

    def __init__(self, upload: UploadedFile):
        self.upload = upload
        self.state = ImportState.IDLE

    def preview(self, limit: int = PREVIEW_ROWS) -> ImportPreview:
        workbook = self._read()
        self.state = ImportState.NORMALIZING
        mapping = map_columns(workbook.headers)
        self.state = ImportState.REPORTED
        return ImportPreview(
            total_rows=len(workbook.rows),
            columns=workbook.headers,
            rows=workbook.rows[:limit],
            mapping=mapping,
            file_hash=self.upload.sha256,
        )

    def commit(self, db: Session, user_id: int, expected_hash: Optional[str] = None) -> ImportResult:
        if expected_hash and expected_hash != self.upload.sha256:
            self.state = ImportState.ABORTED
            raise FormatError("changed")

        workbook = self._read()
        self.state = ImportState.NORMALIZING
        mapping = map_columns(workbook.headers)
        if mapping.missing:
            logger.warning(f"Import for user {user_id} has no column for: {', '.join(mapping.missing)}")

        resolver = EntityResolver(db, user_id)
        result = ImportResult(total_rows=len(workbook.rows))
        logger.info(f"Importing {result.total_rows} rows for user {user_id} from {self.upload.filename}")

        for index, raw_row in workbook.numbered_rows():
            failure = self._process_row(db, resolver, user_id, mapping.apply(raw_row))
            if failure is None:
                result.record_success()
                logger.debug(f"Row {index + FIRST_DATA_ROW} imported")
            else:
                error = result.record_failure(index, failure)
                logger.warning(str(error))

        self.state = ImportState.REPORTED
        logger.info(
            f"Import complete for user {user_id}: {result.summary()} "
            f"(new accounts: {resolver.created_accounts}, "
            f"new categories: {resolver.created_categories})"
        )
        return result

    def _read(self) -> Workbook:
        self.state = ImportState.READING
        try:
            check_upload(self.upload.filename, self.upload.content_type, self.upload.content)
            with staged_upload(self.upload.content, suffix=self.upload.suffix) as path:
                return read_workbook(path)
        except FormatError as e:
            self.state = ImportState.ABORTED
            logger.warning(f"Import aborted ({e.reason}): {e.message}")
            raise

    def _process_row(self, db: Session, resolver: EntityResolver, user_id: int, row: dict) -> Optional[str]:
        """Returns None on success, or the reason the row was skipped."""
        self.state = ImportState.VALIDATING
        outcome = validate_row(row)
        if isinstance(outcome, InvalidRow):
            return outcome.reason

        try:
            self.state = ImportState.RESOLVING
            resolved = resolver.resolve(outcome)
            self.state = ImportState.PERSISTING
            persist_transaction(db, user_id, resolved)
        except SQLAlchemyError as e:
            db.rollback()
            detail = getattr(e, "orig", None) or e
            return f"Database error: {detail}"
        return None


def persist_transaction(db: Session, user_id: int, resolved: ResolvedRow) -> Transaction:
    row = resolved.row
    txn = Transaction(
        user_id=user_id,
        account_id=resolved.account_id,
        category_id=resolved.category_id,
        mode=row.mode.value,
        currency=row.currency.value,
        amount=float(row.amount),
        transaction_date=row.transaction_date,
        description=row.description,
        source="import",
    )
    db.add(txn)
    db.commit()
    return txn


def preview_import(upload: UploadedFile, limit: int = PREVIEW_ROWS) -> ImportPreview:
    return ImportExecutor(upload).preview(limit=limit)


def commit_import(
    upload: UploadedFile,
    db: Session,
    user_id: int,
    expected_hash: Optional[str] = None,
) -> ImportResult:
    return ImportExecutor(upload).commit(db, user_id, expected_hash=expected_hash)
