"""
Row validator/converter for transaction imports.

Turns a normalized row (canonical field -> raw cell) into a typed
ValidatedRow, or an InvalidRow carrying the first problem found. Checks run
in a fixed order: amount, mode, currency, date, names. Nothing here raises
for bad input; callers branch on the returned type.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from ..models import Currency, Mode

# Spreadsheet day 0. Using 1899-12-30 (not 12-31) absorbs Excel's phantom 1900-02-29.
SERIAL_EPOCH = date(1899, 12, 30)

MODE_ALIASES = {
    "income": Mode.INCOME,
    "expense": Mode.EXPENSE,
    "credit card": Mode.CREDIT_CARD,
    "cc": Mode.CREDIT_CARD,
}

ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
DMY_DASH_DATE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
DMY_SLASH_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
NUMERIC_TEXT = re.compile(r"^\d+(\.\d+)?$")

NAMES_REQUIRED = "Account Name and Category Name are required."


@dataclass(frozen=True)
class ValidatedRow:
    account_name: str
    category_name: str
    mode: Mode
    currency: Currency
    amount: Decimal
    transaction_date: date
    description: str = ""


@dataclass(frozen=True)
class InvalidRow:
    reason: str


def display_value(value) -> str:
    """Render a cell the way the user typed it, for error messages."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    return str(value)


def parse_amount(value) -> Optional[Decimal]:
    """Parse a strictly positive, finite amount. Thousands separators are allowed."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    if not amount.is_finite() or amount <= 0:
        return None
    # Amounts are stored as floats; "1e400" overflows and "1e-400" underflows.
    stored = float(amount)
    if not math.isfinite(stored) or stored <= 0:
        return None
    return amount


def normalize_mode(value) -> Optional[Mode]:
    if value is None:
        return None
    key = " ".join(str(value).strip().lower().split())
    return MODE_ALIASES.get(key)


def normalize_currency(value) -> Optional[Currency]:
    if value is None:
        return None
    try:
        return Currency(str(value).strip().upper())
    except ValueError:
        return None


def serial_to_date(serial) -> date:
    """Convert a spreadsheet serial day count to a calendar date (half-up rounding)."""
    return SERIAL_EPOCH + timedelta(days=math.floor(float(serial) + 0.5))


def date_to_serial(value: date) -> int:
    return (value - SERIAL_EPOCH).days


def parse_transaction_date(value) -> Optional[date]:
    """Accept serial numbers, native dates, YYYY-MM-DD, DD-MM-YYYY and DD/MM/YYYY."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return _serial_or_none(value)

    text = str(value).strip()
    # CSV columns that mix serials with text dates arrive as strings.
    if NUMERIC_TEXT.match(text):
        return _serial_or_none(float(text))

    match = ISO_DATE.match(text)
    if match:
        year, month, day = match.groups()
    else:
        match = DMY_DASH_DATE.match(text) or DMY_SLASH_DATE.match(text)
        if not match:
            return None
        day, month, year = match.groups()

    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def _serial_or_none(serial) -> Optional[date]:
    if not math.isfinite(serial):
        return None
    try:
        return serial_to_date(serial)
    except (OverflowError, ValueError):
        return None


def _text(value) -> str:
    return display_value(value).strip()


def validate_row(row: dict) -> Union[ValidatedRow, InvalidRow]:
    """Validate one normalized row. Returns the first failure, if any."""
    raw_amount = row.get("amount")
    amount = parse_amount(raw_amount)
    if amount is None:
        return InvalidRow(f"Invalid amount: {display_value(raw_amount)}")

    raw_mode = row.get("mode")
    mode = normalize_mode(raw_mode)
    if mode is None:
        return InvalidRow(
            f"Invalid mode: {display_value(raw_mode)}. Use Income, Expense, or Credit Card."
        )

    raw_currency = row.get("currency")
    currency = normalize_currency(raw_currency)
    if currency is None:
        return InvalidRow(f"Invalid currency: {display_value(raw_currency)}. Use INR or SAR.")

    raw_date = row.get("transaction_date")
    transaction_date = parse_transaction_date(raw_date)
    if transaction_date is None:
        return InvalidRow(
            f"Invalid date: {display_value(raw_date)}. Use YYYY-MM-DD or spreadsheet date format."
        )

    account_name = _text(row.get("account_name"))
    category_name = _text(row.get("category_name"))
    if not account_name or not category_name:
        return InvalidRow(NAMES_REQUIRED)

    return ValidatedRow(
        account_name=account_name,
        category_name=category_name,
        mode=mode,
        currency=currency,
        amount=amount,
        transaction_date=transaction_date,
        description=_text(row.get("description")),
    )
