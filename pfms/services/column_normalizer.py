"""
Column normalizer: maps free-form spreadsheet headers onto the canonical
import fields.

Each header is matched against COLUMN_RULES in order and takes the first
field it satisfies. When two headers land on the same field, the leftmost
one wins and the rest are reported as ignored.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

CANONICAL_FIELDS = (
    "account_name",
    "category_name",
    "mode",
    "currency",
    "amount",
    "transaction_date",
    "description",
)

# (canonical field, exact header names, header substrings)
COLUMN_RULES = [
    ("account_name", (), ("account",)),
    ("category_name", (), ("category",)),
    ("mode", ("mode",), ("type",)),
    ("currency", ("curr",), ("currency",)),
    ("amount", ("amount",), ("amt",)),
    ("transaction_date", (), ("date",)),
    ("description", (), ("desc", "note")),
]


def normalize_header_name(value) -> str:
    return " ".join(str(value or "").strip().lower().split())


def match_header(header) -> Optional[str]:
    """Return the canonical field a header maps to, or None."""
    name = normalize_header_name(header)
    if not name:
        return None
    for canonical, exact, substrings in COLUMN_RULES:
        if name in exact or any(s in name for s in substrings):
            return canonical
    return None


@dataclass
class ColumnMapping:
    fields: dict = field(default_factory=dict)  # canonical field -> original header
    ignored: list = field(default_factory=list)  # shadowed by an earlier header
    unmapped: list = field(default_factory=list)  # matched no rule

    def apply(self, raw_row: dict) -> dict:
        """Build the normalized row; fields with no mapped header are absent."""
        return {canonical: raw_row.get(header) for canonical, header in self.fields.items()}

    @property
    def missing(self) -> list[str]:
        return [f for f in CANONICAL_FIELDS if f not in self.fields]


def map_columns(headers: list) -> ColumnMapping:
    """Decide, once per file, which header feeds each canonical field."""
    mapping = ColumnMapping()

    for header in headers:
        canonical = match_header(header)
        if canonical is None:
            mapping.unmapped.append(header)
        elif canonical in mapping.fields:
            mapping.ignored.append(header)
            logger.warning(
                f"Column '{header}' also matches {canonical}; "
                f"using '{mapping.fields[canonical]}'"
            )
        else:
            mapping.fields[canonical] = header

    return mapping


def normalize_row(raw_row: dict, mapping: Optional[ColumnMapping] = None) -> dict:
    """Normalize a single row. Pass a precomputed mapping when normalizing many rows."""
    if mapping is None:
        mapping = map_columns(list(raw_row.keys()))
    return mapping.apply(raw_row)
