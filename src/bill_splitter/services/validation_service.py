"""Split validation for the receipt and manual flows"""
from typing import Dict, List, Optional

from ..core.config import settings
from ..models.bill_models import (
    Bill,
    ChargeSplit,
    FinalSplit,
    FinalSplitCheck,
    FinalizeCheck,
    ItemSplit,
    SplitType,
    ValidationResult,
    item_id,
)
from .expense_calculations import format_currency, round_currency


def _amounts_mismatch(allocated: float, expected: float, tolerance: float) -> bool:
    # Compared in whole cents; a difference equal to the tolerance is a mismatch
    return round_currency(abs(allocated - expected)) >= tolerance


class ValidationService:
    def validate_custom_amounts(
        self,
        custom_amounts: Dict[str, float],
        expected_total: float,
        tolerance: Optional[float] = None,
    ) -> ValidationResult:
        if tolerance is None:
            tolerance = settings.custom_split_tolerance

        errors = []
        total_custom = sum(custom_amounts.values())
        if _amounts_mismatch(total_custom, expected_total, tolerance):
            errors.append(
                f"Custom amounts total {format_currency(total_custom)} "
                f"but expense is {format_currency(expected_total)}"
            )

        if any(amount <= 0 for amount in custom_amounts.values()):
            errors.append("All amounts must be greater than zero.")

        return ValidationResult.from_errors(errors)

    def validate_manual_splits(
        self,
        amount: float,
        split_type: SplitType,
        custom_amounts: Optional[Dict[str, float]] = None,
    ) -> ValidationResult:
        if split_type == SplitType.CUSTOM and custom_amounts is not None:
            return self.validate_custom_amounts(custom_amounts, amount)
        return ValidationResult(is_valid=True)

    def validate_receipt_splits(
        self,
        bill: Bill,
        item_splits: List[ItemSplit],
        tax_split: Optional[ChargeSplit] = None,
        other_charges_split: Optional[ChargeSplit] = None,
    ) -> ValidationResult:
        errors = []
        splits_by_item = {split.item_id: split for split in item_splits}

        for index, item in enumerate(bill.items):
            split = splits_by_item.get(item_id(index))
            if split is None or not split.assigned_members():
                errors.append(f"Please select members for: {item.name}.")
                continue

            if split.split_type == SplitType.CUSTOM and split.custom_amounts:
                check = self.validate_custom_amounts(
                    split.custom_amounts, item.price, settings.item_split_tolerance
                )
                errors.extend(f"{item.name}: {error}" for error in check.errors)

        if (bill.taxes or 0.0) > 0 and (tax_split is None or not tax_split.assigned_members()):
            errors.append("Please select members to split the tax.")

        if (bill.other_charges or 0.0) > 0 and (
            other_charges_split is None or not other_charges_split.assigned_members()
        ):
            errors.append("Please select members to split other charges.")

        return ValidationResult.from_errors(errors)

    def validate_item_splits(self, item_splits: List[ItemSplit], total_cost: float) -> ValidationResult:
        errors = []

        for position, split in enumerate(item_splits, start=1):
            if not split.assigned_members():
                errors.append(f"Item {position} must have at least one member selected.")

        total_allocated = 0.0
        for split in item_splits:
            if split.split_type == SplitType.CUSTOM and split.custom_amounts:
                total_allocated += sum(split.custom_amounts.values())
            else:
                total_allocated += split.price or 0.0

        if round_currency(abs(total_allocated - total_cost)) > settings.item_split_tolerance:
            errors.append("Total allocated amount must equal the total bill amount.")

        return ValidationResult.from_errors(errors)

    def validate_final_splits(
        self,
        final_splits: List[FinalSplit],
        target_total: float,
        tolerance: Optional[float] = None,
    ) -> FinalSplitCheck:
        if tolerance is None:
            tolerance = settings.final_split_tolerance

        calculated_total = round_currency(sum(split.amount_owed for split in final_splits))
        difference = round_currency(abs(calculated_total - target_total))
        return FinalSplitCheck(
            is_valid=difference < tolerance,
            calculated_total=calculated_total,
            difference=difference,
        )

    def can_finalize_expense(
        self,
        bill: Bill,
        final_splits: List[FinalSplit],
        payer_id: Optional[str] = None,
    ) -> FinalizeCheck:
        if not payer_id:
            return FinalizeCheck(can_finalize=False, reason="Please select who paid the bill.")

        if bill.discrepancy_flag:
            return FinalizeCheck(
                can_finalize=False,
                reason="Cannot finalize due to bill discrepancy. "
                       "Please edit item prices to fix the discrepancy.",
            )

        if not self.validate_final_splits(final_splits, bill.total_cost).is_valid:
            return FinalizeCheck(can_finalize=False, reason="Cannot finalize due to calculation mismatch.")

        return FinalizeCheck(can_finalize=True)


# Global service instance
validation_service = ValidationService()
