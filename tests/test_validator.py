"""Tests for the two-stage expense validator."""

import pytest
from datetime import date, datetime, timedelta

from expense_ledger.config import AppSettings
from expense_ledger.models.expense import Expense, ExpenseCategory
from expense_ledger.services.storage import InMemoryBackend, LocalRecordStore
from expense_ledger.validation import ExpenseValidationError, ExpenseValidator


@pytest.fixture
def app_settings():
    return AppSettings(max_expense_amount=10000, future_date_tolerance_days=7)


@pytest.fixture
def store():
    return LocalRecordStore(InMemoryBackend())


@pytest.fixture
def validator(store, app_settings):
    return ExpenseValidator(store, settings=app_settings)


def valid_input(**overrides):
    data = {
        "date": "2024-01-05",
        "description": "Groceries",
        "amount": "125.50",
        "category": "Food",
    }
    data.update(overrides)
    return data


def issue_types(result):
    return {(issue.field, issue.issue_type) for issue in result.issues}


class TestSchemaValidation:
    """Stage 1: presence, format and range."""

    def test_valid_input(self, validator):
        """Test clean input passes and is parsed."""
        result = validator.validate(valid_input())
        assert result.is_valid is True
        assert result.issues == []
        assert result.expense_input.amount == 125.5
        assert result.expense_input.category == ExpenseCategory.FOOD
        assert result.expense_input.date == date(2024, 1, 5)

    def test_missing_fields(self, validator):
        """Test every missing field is reported at once."""
        result = validator.validate({"date": "", "description": "  ", "amount": None})
        assert result.is_valid is False
        assert result.expense_input is None
        assert issue_types(result) == {
            ("date", "missing"),
            ("description", "missing"),
            ("amount", "missing"),
            ("category", "missing"),
        }

    @pytest.mark.parametrize("amount", ["0", "-5", 0, "nan", "inf"])
    def test_non_positive_amount(self, validator, amount):
        """Test amounts must be finite and above zero."""
        result = validator.validate(valid_input(amount=amount))
        assert ("amount", "invalid_value") in issue_types(result)

    def test_non_numeric_amount(self, validator):
        """Test text amounts are rejected."""
        result = validator.validate(valid_input(amount="twelve"))
        assert ("amount", "invalid_format") in issue_types(result)

    def test_unknown_category(self, validator):
        """Test only the fixed labels are accepted."""
        result = validator.validate(valid_input(category="Gadgets"))
        assert ("category", "invalid_value") in issue_types(result)

    def test_invalid_date(self, validator):
        """Test non-ISO dates are rejected."""
        result = validator.validate(valid_input(date="05/01/2024"))
        assert ("date", "invalid_format") in issue_types(result)

    def test_date_objects_accepted(self, validator):
        """Test date and datetime values from widgets."""
        assert validator.validate(valid_input(date=date(2024, 1, 5))).is_valid
        result = validator.validate(valid_input(date=datetime(2024, 1, 5, 10, 30)))
        assert result.expense_input.date == date(2024, 1, 5)

    def test_description_too_long(self, validator):
        """Test the description length limit."""
        result = validator.validate(valid_input(description="x" * 101))
        assert ("description", "too_long") in issue_types(result)

    def test_validate_or_raise(self, validator):
        """Test the raising variant."""
        with pytest.raises(ExpenseValidationError, match="Amount is required"):
            validator.validate_or_raise(valid_input(amount=""))
        assert validator.validate_or_raise(valid_input()).description == "Groceries"


class TestSemanticValidation:
    """Stage 2: warnings that do not block saving."""

    def test_future_date_warns(self, validator):
        """Test dates beyond the tolerance produce a warning."""
        future = date.today() + timedelta(days=30)
        result = validator.validate(valid_input(date=future.isoformat()))
        assert result.is_valid is True
        assert ("date", "future_date") in issue_types(result)
        assert len(result.warnings) == 1

    def test_large_amount_warns(self, validator):
        """Test amounts above the threshold produce a warning."""
        result = validator.validate(valid_input(amount=50000))
        assert result.is_valid is True
        assert ("amount", "suspicious_value") in issue_types(result)

    def test_possible_duplicate_warns(self, validator, store):
        """Test an identical stored expense is flagged."""
        store.add(Expense(date="2024-01-05", description="groceries", amount=125.5, category="Food"))
        result = validator.validate(valid_input())
        assert result.is_valid is True
        assert ("duplicate", "possible_duplicate") in issue_types(result)

    def test_duplicate_check_can_be_skipped(self, validator, store):
        """Test check_duplicates=False."""
        store.add(Expense(date="2024-01-05", description="Groceries", amount=125.5, category="Food"))
        result = validator.validate(valid_input(), check_duplicates=False)
        assert result.warnings == []

    def test_semantic_stage_skipped_on_schema_failure(self, validator):
        """Test warnings are not computed for invalid input."""
        future = date.today() + timedelta(days=30)
        result = validator.validate(valid_input(date=future.isoformat(), amount="-1"))
        assert result.warnings == []


class TestSummary:
    """Tests for the user-facing summary."""

    def test_clean_summary(self, validator):
        """Test the all-good message."""
        result = validator.validate(valid_input())
        assert validator.get_user_friendly_summary(result) == "✅ Expense looks good."

    def test_error_summary_lists_fixes(self, validator):
        """Test errors and suggested fixes are rendered."""
        result = validator.validate(valid_input(amount="abc"))
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("❌ Please fix the following:")
        assert "is not a number" in summary
        assert "💡" in summary

    def test_warning_summary(self, validator):
        """Test warnings are rendered on their own."""
        result = validator.validate(valid_input(amount=50000))
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("⚠️ Please verify the following:")
