"""
Per-row outcome aggregation for transaction imports.
"""

from dataclasses import dataclass, field
from typing import Optional

# Data row 0 sits on spreadsheet row 2, below the header row.
FIRST_DATA_ROW = 2


@dataclass(frozen=True)
class RowError:
    row_number: int
    message: str

    def __str__(self):
        return f"Row {self.row_number}: {self.message}"


@dataclass
class ImportResult:
    total_rows: int = 0
    success_count: int = 0
    failed_count: int = 0
    errors: list = field(default_factory=list)

    def record_success(self) -> None:
        self.success_count += 1

    def record_failure(self, index: int, message: str) -> RowError:
        """Record a failed data row by its 0-based index in the file."""
        error = RowError(row_number=index + FIRST_DATA_ROW, message=message)
        self.failed_count += 1
        self.errors.append(error)
        return error

    def error_lines(self, limit: Optional[int] = None) -> list[str]:
        """All errors as "Row <n>: <message>"; with a limit, the rest are summarized."""
        lines = [str(e) for e in self.errors]
        if limit is None or len(lines) <= limit:
            return lines
        return lines[:limit] + [f"... and {len(lines) - limit} more"]

    def summary(self) -> str:
        return (
            f"Processed {self.total_rows} rows. "
            f"Success: {self.success_count}, Failed: {self.failed_count}"
        )

    def to_response(self) -> dict:
        return {
            "success": self.success_count,
            "failed": self.failed_count,
            "errors": self.error_lines(),
        }
