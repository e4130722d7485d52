"""
Two-Stage Expense Validation

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (date, description, amount, category)
- Format validation (ISO date, numeric amount, known category)
- Range validation (amount > 0, description length)

STAGE 2 - SEMANTIC VALIDATION (warnings only):
- Future date detection
- Absurd amount detection
- Possible duplicate detection against the stored ledger

Stage 2 only runs if stage 1 passes. Validation never silently fixes
input; it reports issues for the caller to show.
"""

import math
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional

from expense_ledger.config import AppSettings, get_settings
from expense_ledger.models.expense import (
    MAX_DESCRIPTION_LENGTH,
    ExpenseCategory,
    ExpenseInput,
    ValidationIssue,
    ValidationResult,
)
from expense_ledger.services.storage import RecordStoreInterface


class ExpenseValidationError(Exception):
    """Raised when expense input fails schema validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = [i.message for i in result.issues if i.severity == "error"]
        super().__init__("; ".join(messages) or "Invalid expense")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ExpenseValidator:
    """
    Validates expense form input through a two-stage pipeline.

    Stage 1: Schema validation (no storage needed)
    Stage 2: Semantic validation (uses storage for duplicate checks)
    """

    def __init__(
        self,
        store: Optional[RecordStoreInterface] = None,
        settings: Optional[AppSettings] = None,
    ):
        """
        Initialize validator.

        Args:
            store: Record store for duplicate checking.
                   If None, duplicate checking is skipped.
            settings: Thresholds for semantic checks.
        """
        self._store = store
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        raw: Mapping[str, Any],
    ) -> tuple[Optional[ExpenseInput], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (parsed_input_or_None, list_of_issues)
        """
        issues = []

        # Description
        description = raw.get("description")
        if _is_blank(description):
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))
        elif len(str(description).strip()) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
                suggested_fix="Shorten the description",
            ))

        # Amount
        amount = raw.get("amount")
        if _is_blank(amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        else:
            try:
                amount = float(amount)
            except (TypeError, ValueError):
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message=f"Amount ({amount}) is not a number",
                    severity="error",
                    suggested_fix="Enter the amount as a plain number, e.g. 125.50",
                ))
            else:
                if not math.isfinite(amount) or amount <= 0:
                    issues.append(ValidationIssue(
                        field="amount",
                        issue_type="invalid_value",
                        message="Amount must be greater than zero",
                        severity="error",
                    ))

        # Category
        category = raw.get("category")
        if _is_blank(category):
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Please select a category",
                severity="error",
            ))
        else:
            try:
                category = ExpenseCategory(category)
            except ValueError:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="invalid_value",
                    message=f"Unknown category: {category}",
                    severity="error",
                    suggested_fix=f"Choose one of: {', '.join(c.value for c in ExpenseCategory)}",
                ))

        # Date
        expense_date = raw.get("date")
        if _is_blank(expense_date):
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))
        elif isinstance(expense_date, datetime):
            expense_date = expense_date.date()
        elif not isinstance(expense_date, date):
            try:
                expense_date = date.fromisoformat(str(expense_date).strip())
            except ValueError:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="invalid_format",
                    message=f"Date ({expense_date}) is not a valid YYYY-MM-DD date",
                    severity="error",
                ))

        if any(issue.severity == "error" for issue in issues):
            return None, issues

        parsed = ExpenseInput(
            date=expense_date,
            description=str(description),
            amount=amount,
            category=category,
        )
        return parsed, issues

    def _validate_semantic(self, parsed: ExpenseInput) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation. Produces warnings only.
        """
        issues = []
        today = date.today()

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if parsed.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({parsed.date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if parsed.amount > self._settings.max_expense_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({parsed.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        return issues

    def _check_duplicates(self, parsed: ExpenseInput) -> list[ValidationIssue]:
        """Flag an identical date/description/amount already in the ledger."""
        if self._store is None:
            return []

        description = parsed.description.casefold()
        for expense in self._store.load().expenses:
            if (
                expense.date == parsed.date
                and expense.amount == parsed.amount
                and expense.description.casefold() == description
            ):
                return [ValidationIssue(
                    field="duplicate",
                    issue_type="possible_duplicate",
                    message=(
                        f"An expense '{expense.description}' of {parsed.amount:g} "
                        f"on {parsed.date} already exists"
                    ),
                    severity="warning",
                    suggested_fix="Please verify this isn't a duplicate entry",
                )]
        return []

    def validate(
        self,
        raw: Mapping[str, Any],
        check_duplicates: bool = True,
    ) -> ValidationResult:
        """
        Run the full two-stage pipeline.

        Args:
            raw: Form fields: date, description, amount, category
            check_duplicates: Whether to look for duplicates (requires storage)
        """
        parsed, issues = self._validate_schema(raw)
        schema_valid = parsed is not None

        if schema_valid:
            issues.extend(self._validate_semantic(parsed))
            if check_duplicates:
                issues.extend(self._check_duplicates(parsed))

        warnings = [issue.message for issue in issues if issue.severity == "warning"]

        return ValidationResult(
            schema_valid=schema_valid,
            is_valid=schema_valid,
            issues=issues,
            warnings=warnings,
            expense_input=parsed,
        )

    def validate_or_raise(self, raw: Mapping[str, Any]) -> ExpenseInput:
        """
        Validate and return the parsed input.

        Raises:
            ExpenseValidationError: If schema validation fails
        """
        result = self.validate(raw)
        if not result.is_valid:
            raise ExpenseValidationError(result)
        return result.expense_input

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Render the result as text for a status banner."""
        if result.is_valid and not result.warnings:
            return "✅ Expense looks good."

        lines = []

        if not result.schema_valid:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
