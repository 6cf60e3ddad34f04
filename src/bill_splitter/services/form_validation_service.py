"""Field checks for the manual expense form"""
from datetime import date
from typing import Optional, Union

from ..core.config import settings
from ..models.bill_models import ExpenseDetailsInput, ValidationResult


def _invalid(error: str) -> ValidationResult:
    return ValidationResult(is_valid=False, errors=[error])


def _valid() -> ValidationResult:
    return ValidationResult(is_valid=True)


def _parse_amount(value: Union[str, float, None]) -> Optional[float]:
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def _one_year_before(day: date) -> date:
    try:
        return day.replace(year=day.year - 1)
    except ValueError:  # Feb 29
        return day.replace(year=day.year - 1, day=28)


class FormValidationService:
    def validate_expense_title(self, title: Optional[str]) -> ValidationResult:
        trimmed = (title or "").strip()
        if not trimmed:
            return _invalid("Please enter an expense title.")
        if len(trimmed) > settings.max_title_length:
            return _invalid(f"Title must be {settings.max_title_length} characters or less.")
        return _valid()

    def validate_expense_amount(self, amount: Union[str, float, None]) -> ValidationResult:
        if amount is None or amount == "":
            return _invalid("Please enter an expense amount.")

        parsed = _parse_amount(amount)
        if parsed is None or parsed != parsed:
            return _invalid("Please enter a valid expense amount.")
        if parsed <= 0:
            return _invalid("Amount must be greater than zero.")
        if parsed > settings.max_expense_amount:
            return _invalid(f"Amount cannot exceed ${settings.max_expense_amount:,.2f}.")
        return _valid()

    def validate_expense_date(self, value: Optional[str], today: Optional[date] = None) -> ValidationResult:
        """The date must be within the last year and not in the future."""
        if not value:
            return _invalid("Please select an expense date.")

        try:
            selected = date.fromisoformat(value[:10])
        except ValueError:
            return _invalid("Please select a valid expense date.")

        today = today or date.today()
        if selected > today:
            return _invalid("Date cannot be in the future.")
        if selected < _one_year_before(today):
            return _invalid("Date cannot be more than one year ago.")
        return _valid()

    def validate_notes(self, notes: str, max_length: Optional[int] = None) -> ValidationResult:
        max_length = max_length or settings.max_notes_length
        if len(notes) > max_length:
            return _invalid(f"Notes must be {max_length} characters or less.")
        return _valid()

    def validate_price_input(self, value: str) -> ValidationResult:
        # Empty input is an intermediate editing state
        if value == "":
            return _valid()

        parsed = _parse_amount(value)
        if parsed is None:
            return _invalid("Please enter a valid number.")
        if parsed < 0:
            return _invalid("Amount cannot be negative.")
        if parsed > settings.max_expense_amount:
            return _invalid("Amount is too large.")
        return _valid()

    def validate_manual_expense_form(
        self,
        title: str,
        amount: Union[str, float],
        date_value: str,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """Stops at the first failing field."""
        checks = [
            lambda: self.validate_expense_title(title),
            lambda: self.validate_expense_amount(amount),
            lambda: self.validate_expense_date(date_value, today),
        ]
        if notes:
            checks.append(lambda: self.validate_notes(notes))

        for check in checks:
            result = check()
            if not result.is_valid:
                return result
        return _valid()

    def validate_expense_details(self, data: ExpenseDetailsInput, today: Optional[date] = None) -> ValidationResult:
        """Collects every field error, including member selection."""
        errors = []
        for result in (
            self.validate_expense_title(data.title),
            self.validate_expense_amount(data.amount),
            self.validate_expense_date(data.date, today),
        ):
            errors.extend(result.errors)

        if data.notes:
            errors.extend(self.validate_notes(data.notes).errors)

        if not data.members:
            errors.append("Please select at least one member.")

        return ValidationResult.from_errors(errors)


# Global service instance
form_validation_service = FormValidationService()
