"""
Downloadable import template: the canonical headers plus a few sample rows.
"""

import io

import pandas as pd

TEMPLATE_SHEET = "Transactions"

SAMPLE_ROWS = [
    {
        "account_name": "HDFC",
        "category_name": "Salary",
        "mode": "Income",
        "currency": "INR",
        "amount": 50000,
        "transaction_date": "2025-11-29",
        "description": "Monthly salary",
    },
    {
        "account_name": "Cash",
        "category_name": "Groceries",
        "mode": "Expense",
        "currency": "INR",
        "amount": 5000,
        "transaction_date": "2025-11-29",
        "description": "Weekly shopping",
    },
    {
        "account_name": "Alrajhi",
        "category_name": "Rent",
        "mode": "Expense",
        "currency": "SAR",
        "amount": 2000,
        "transaction_date": "2025-11-29",
        "description": "Monthly rent",
    },
]

# Column widths in characters, A..G
COLUMN_WIDTHS = [18, 18, 15, 12, 12, 15, 25]


def build_template() -> bytes:
    """Render the template workbook as .xlsx bytes."""
    buffer = io.BytesIO()
    df = pd.DataFrame(SAMPLE_ROWS)
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=TEMPLATE_SHEET, index=False)
        sheet = writer.sheets[TEMPLATE_SHEET]
        for letter, width in zip("ABCDEFG", COLUMN_WIDTHS):
            sheet.column_dimensions[letter].width = width
    return buffer.getvalue()
