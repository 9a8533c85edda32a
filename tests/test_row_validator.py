from datetime import date, datetime
from decimal import Decimal

import pytest

from pfms.models import Currency, Mode
from pfms.services.row_validator import (
    InvalidRow,
    ValidatedRow,
    date_to_serial,
    display_value,
    normalize_currency,
    normalize_mode,
    parse_amount,
    parse_transaction_date,
    serial_to_date,
    validate_row,
)


def valid_row(**overrides) -> dict:
    row = {
        "account_name": "HDFC",
        "category_name": "Salary",
        "mode": "Income",
        "currency": "INR",
        "amount": "50000",
        "transaction_date": "2025-01-17",
        "description": "pay",
    }
    row.update(overrides)
    return row


@pytest.mark.parametrize(
    "value, expected",
    [
        ("50000", Decimal("50000")),
        (" 12.50 ", Decimal("12.50")),
        ("1,250.75", Decimal("1250.75")),
        (2000, Decimal("2000")),
        (0.5, Decimal("0.5")),
    ],
)
def test_parse_amount_accepts_positive_numbers(value, expected):
    assert parse_amount(value) == expected


@pytest.mark.parametrize(
    "value",
    ["-5", -5, 0, "0", "", None, "abc", "nan", "inf", float("inf"), float("nan"), True, "1e400", "1e-400"],
)
def test_parse_amount_rejects(value):
    assert parse_amount(value) is None


@pytest.mark.parametrize("value", ["income", "INCOME", "Income", "  income "])
def test_normalize_mode_is_case_insensitive(value):
    assert normalize_mode(value) == Mode.INCOME


@pytest.mark.parametrize("value", ["cc", "CC", "credit card", "Credit  Card"])
def test_normalize_mode_credit_card_aliases(value):
    assert normalize_mode(value) == Mode.CREDIT_CARD


@pytest.mark.parametrize("value", ["Transfer", "", None, "credit"])
def test_normalize_mode_rejects(value):
    assert normalize_mode(value) is None


def test_normalize_currency():
    assert normalize_currency("inr") == Currency.INR
    assert normalize_currency(" sar ") == Currency.SAR
    assert normalize_currency("USD") is None
    assert normalize_currency(None) is None


def test_serial_date_conversion():
    assert serial_to_date(45413) == date(2024, 5, 1)
    assert date_to_serial(date(2024, 5, 1)) == 45413
    assert serial_to_date(date_to_serial(serial_to_date(45413))) == date(2024, 5, 1)


def test_serial_date_rounds_half_up():
    assert serial_to_date(45412.5) == date(2024, 5, 1)
    assert serial_to_date(45413.4) == date(2024, 5, 1)


@pytest.mark.parametrize(
    "value, expected",
    [
        (45413, date(2024, 5, 1)),
        (45413.0, date(2024, 5, 1)),
        ("45413", date(2024, 5, 1)),
        ("2025-01-17", date(2025, 1, 17)),
        (" 2025-01-17 ", date(2025, 1, 17)),
        ("17-01-2025", date(2025, 1, 17)),
        ("17/01/2025", date(2025, 1, 17)),
        (datetime(2025, 1, 17, 0, 0), date(2025, 1, 17)),
        (date(2025, 1, 17), date(2025, 1, 17)),
    ],
)
def test_parse_transaction_date(value, expected):
    assert parse_transaction_date(value) == expected


@pytest.mark.parametrize(
    "value",
    ["2025/01/17", "1/7/2025", "31-02-2025", "2025-13-01", "Jan 17 2025", "", None, float("nan")],
)
def test_parse_transaction_date_rejects(value):
    assert parse_transaction_date(value) is None


def test_display_value():
    assert display_value(None) == ""
    assert display_value(-5.0) == "-5"
    assert display_value(2.5) == "2.5"
    assert display_value("USD") == "USD"
    assert display_value(datetime(2025, 1, 17)) == "2025-01-17"


def test_validate_row_returns_typed_row():
    result = validate_row(valid_row(account_name="  HDFC ", mode="cc", currency="sar"))

    assert result == ValidatedRow(
        account_name="HDFC",
        category_name="Salary",
        mode=Mode.CREDIT_CARD,
        currency=Currency.SAR,
        amount=Decimal("50000"),
        transaction_date=date(2025, 1, 17),
        description="pay",
    )


def test_validate_row_description_is_optional():
    row = valid_row()
    del row["description"]

    result = validate_row(row)

    assert isinstance(result, ValidatedRow)
    assert result.description == ""


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"amount": "-5"}, "Invalid amount: -5"),
        ({"amount": -5.0}, "Invalid amount: -5"),
        ({"amount": None}, "Invalid amount: "),
        ({"mode": "Transfer"}, "Invalid mode: Transfer. Use Income, Expense, or Credit Card."),
        ({"currency": "USD"}, "Invalid currency: USD. Use INR or SAR."),
        (
            {"transaction_date": "2025/01/17"},
            "Invalid date: 2025/01/17. Use YYYY-MM-DD or spreadsheet date format.",
        ),
        ({"account_name": ""}, "Account Name and Category Name are required."),
        ({"category_name": "   "}, "Account Name and Category Name are required."),
        ({"account_name": None}, "Account Name and Category Name are required."),
    ],
)
def test_validate_row_errors(overrides, message):
    assert validate_row(valid_row(**overrides)) == InvalidRow(message)


def test_validate_row_reports_first_failure_only():
    result = validate_row(valid_row(amount="abc", mode="nope", currency="USD", account_name=""))

    assert result == InvalidRow("Invalid amount: abc")


def test_validate_row_missing_fields():
    result = validate_row({"amount": "10", "mode": "Expense"})

    assert result == InvalidRow("Invalid currency: . Use INR or SAR.")
