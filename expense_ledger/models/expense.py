"""
Core Data Models for Expense Ledger

These models define the schemas for all data flowing through the ledger.
They are designed to:
1. Enforce the record constraints at runtime
2. Provide clear validation error messages
3. Serialize to the exact JSON shape the record store persists

DESIGN DECISION: A stored Expense accepts a zero amount, an ExpenseInput
does not. User entry is held to amount > 0, while the tolerant CSV import
turns an unreadable amount into 0 instead of dropping the row.
"""

import datetime as dt
from enum import Enum
from typing import Any, Mapping, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


LEDGER_SCHEMA_VERSION = "1.0.0"

MAX_DESCRIPTION_LENGTH = 100


def generate_expense_id() -> str:
    """Return a fresh opaque expense id."""
    return uuid4().hex


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    Values are the display labels, which is also what the CSV file
    and the spreadsheet mirror carry.
    """
    FOOD = "Food"
    TRANSPORTATION = "Transportation"
    HOUSING = "Housing"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    TRAVEL = "Travel"
    INSURANCE = "Insurance"
    SAVINGS = "Savings"
    OTHER = "Other"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    EXCEL = "excel"


# =============================================================================
# CORE EXPENSE MODELS
# =============================================================================

class Expense(BaseModel):
    """
    A single recorded expense.

    The id is assigned once at creation and never changes.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=generate_expense_id,
        min_length=1,
        description="Opaque unique expense ID"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the expense (YYYY-MM-DD)"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=MAX_DESCRIPTION_LENGTH,
        description="What the money was spent on"
    )
    amount: float = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Amount spent"
    )
    category: ExpenseCategory = Field(
        ...,
        description="Expense category (required)"
    )


class ExpenseInput(BaseModel):
    """
    Expense fields as submitted from an entry form.

    Stricter than Expense: the amount must be greater than zero.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date: dt.date
    description: str = Field(..., min_length=1, max_length=MAX_DESCRIPTION_LENGTH)
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    category: ExpenseCategory

    def to_expense(self) -> Expense:
        """Create a new Expense with a freshly generated id."""
        return Expense(
            date=self.date,
            description=self.description,
            amount=self.amount,
            category=self.category,
        )


class LedgerSnapshot(BaseModel):
    """
    The full persisted collection plus metadata.

    Written as one JSON document; never partially updated.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    expenses: list[Expense] = Field(default_factory=list)
    last_updated: Optional[dt.datetime] = None
    version: str = LEDGER_SCHEMA_VERSION


class UserSettings(BaseModel):
    """
    User preferences.

    Persisted with camelCase keys. Missing keys fall back to defaults.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    currency: str = "₹"
    date_format: str = "dd/MM/yyyy"
    theme: Theme = Theme.LIGHT
    auto_save: bool = True
    export_format: ExportFormat = ExportFormat.CSV
    default_category: str = ""
    csv_export_path: str = ""

    @field_validator('default_category')
    @classmethod
    def validate_default_category(cls, v: str) -> str:
        """Empty means no default; anything else must be a known category."""
        if v:
            ExpenseCategory(v)
        return v

    @classmethod
    def normalize_keys(cls, changes: Mapping[str, Any]) -> dict[str, Any]:
        """
        Map persisted camelCase keys to field names and drop unknown keys.
        """
        by_alias = {
            field.alias: name
            for name, field in cls.model_fields.items()
            if field.alias
        }
        normalized = {}
        for key, value in changes.items():
            name = by_alias.get(key, key)
            if name in cls.model_fields:
                normalized[name] = value
        return normalized

    def merge(self, changes: Mapping[str, Any]) -> "UserSettings":
        """Return a copy with `changes` applied field by field."""
        updates = self.normalize_keys(changes)
        return type(self).model_validate({**self.model_dump(), **updates})


# =============================================================================
# QUERY MODELS
# =============================================================================

class ExpenseFilter(BaseModel):
    """
    Conjunctive filter criteria. Every criterion is optional.

    Empty strings coming from form widgets mean "not set".
    """

    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    category: Optional[ExpenseCategory] = None
    search_term: Optional[str] = None

    @field_validator('start_date', 'end_date', 'category', mode='before')
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('search_term', mode='before')
    @classmethod
    def empty_search_to_none(cls, v: Any) -> Any:
        """Only the empty string is unset; whitespace is searched as given."""
        if v == "":
            return None
        return v

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None


class LedgerStatistics(BaseModel):
    """Derived statistics. Recomputed on demand, never persisted."""

    total: float = 0.0
    count: int = 0
    average: float = 0.0
    this_month: float = 0.0
    last_month: float = 0.0
    month_change_percent: float = Field(
        default=0.0,
        description="Absolute month-over-month change in percent"
    )
    month_change_is_increase: bool = False
    top_category: str = "None"
    top_category_amount: float = 0.0
    daily_average: float = 0.0


# =============================================================================
# RESULT MODELS
# =============================================================================

class SaveResult(BaseModel):
    """Outcome of a write to the record store."""

    success: bool
    reason: Optional[str] = None
    saved_at: Optional[dt.datetime] = None


class StorageStats(BaseModel):
    """Summary of what the record store currently holds."""

    total_expenses: int = 0
    total_amount: float = 0.0
    last_updated: Optional[dt.datetime] = None
    storage_size: int = Field(
        default=0,
        ge=0,
        description="Size of the stored snapshot in bytes"
    )


class LedgerBackup(BaseModel):
    """Full export of expenses and settings for backup and restore."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    expenses: list[Expense] = Field(default_factory=list)
    settings: Optional[UserSettings] = None
    export_date: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'possible_duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (presence, types, ranges)
    Stage 2: Semantic validation (warnings only)
    """

    schema_valid: bool
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    expense_input: Optional[ExpenseInput] = Field(
        default=None,
        description="The parsed input, present when schema validation passed"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


class SyncResult(BaseModel):
    """Outcome of a spreadsheet synchronization."""

    success: bool = False
    synced: int = 0
    errors: list[str] = Field(default_factory=list)


class SheetsConfigStatus(BaseModel):
    """Whether the spreadsheet mirror has the settings it needs."""

    is_valid: bool
    missing_config: list[str] = Field(default_factory=list)


# =============================================================================
# LEDGER SERVICE RESULTS
# =============================================================================

class SubmissionResult(BaseModel):
    """
    Outcome of submitting an expense from an entry form.

    A rejected submission carries the validation issues; an accepted one
    whose save failed still carries the expense and the failed SaveResult.
    """

    success: bool
    message: str
    validation: ValidationResult
    expense: Optional[Expense] = None
    expenses: list[Expense] = Field(default_factory=list)
    save_result: Optional[SaveResult] = None


class CsvExport(BaseModel):
    """CSV text ready to be written or downloaded."""

    filename: str
    content: str
    row_count: int = Field(ge=0)


class ImportResult(BaseModel):
    """Outcome of importing a CSV file into the ledger."""

    imported: int = 0
    skipped_duplicates: int = 0
    replaced: bool = False
    expenses: list[Expense] = Field(default_factory=list)
    save_result: Optional[SaveResult] = None
