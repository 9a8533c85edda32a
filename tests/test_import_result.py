from pfms.services.import_result import ImportResult, RowError


def test_row_numbers_count_the_header_row():
    result = ImportResult(total_rows=3)

    result.record_success()
    error = result.record_failure(1, "Invalid amount: -5")

    assert error == RowError(row_number=3, message="Invalid amount: -5")
    assert str(error) == "Row 3: Invalid amount: -5"
    assert (result.success_count, result.failed_count) == (1, 1)


def test_error_lines_keep_every_error_unless_limited():
    result = ImportResult(total_rows=25)
    for index in range(25):
        result.record_failure(index, "Invalid mode: x. Use Income, Expense, or Credit Card.")

    assert len(result.error_lines()) == 25
    capped = result.error_lines(limit=20)
    assert len(capped) == 21
    assert capped[0].startswith("Row 2: ")
    assert capped[-1] == "... and 5 more"
    assert len(result.errors) == 25


def test_summary():
    result = ImportResult(total_rows=2, success_count=1, failed_count=1)

    assert result.summary() == "Processed 2 rows. Success: 1, Failed: 1"
