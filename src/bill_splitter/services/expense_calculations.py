"""Expense splitting arithmetic: discrepancy detection, allocation and reconciliation"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Dict, List, Any, Optional, Sequence, Union
from loguru import logger

from ..core.config import settings
from ..models.bill_models import (
    Bill,
    ChargeSplit,
    DiscrepancyCheck,
    FinalSplit,
    ItemSplit,
    Member,
    PriceCalculation,
    SplitType,
    item_id,
)

CENTS = Decimal("0.01")


def round_currency(amount: float) -> float:
    """Round half-up to whole cents."""
    return float(Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP))


def format_currency(amount: Optional[float]) -> str:
    if amount is None:
        return "$0.00"
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def parse_currency_input(value: str) -> float:
    """Parse user input such as "$1,234.50"; anything unparseable is 0."""
    cleaned = value.replace("$", "").replace(",", "").strip()
    try:
        return float(Decimal(cleaned))
    except (InvalidOperation, ValueError):
        return 0.0


def _price_of(item: Any) -> float:
    if isinstance(item, dict):
        return float(item.get("price", 0.0))
    return float(item.price)


class ExpenseCalculationService:
    def calculate_discrepancy(
        self,
        items: Sequence[Any],
        total_cost: float,
        taxes: Optional[float] = None,
        other_charges: Optional[float] = None,
        discount: Optional[float] = None,
        tolerance: Optional[float] = None,
    ) -> DiscrepancyCheck:
        """
        Compare the receipt's stated total with the sum of its components

        Args:
            items: Receipt items or mappings carrying a "price"
            total_cost: Total printed on the receipt
            taxes, other_charges, discount: Optional components, absent means zero
            tolerance: Largest difference that is not flagged

        Returns:
            DiscrepancyCheck; a difference exactly at the tolerance is not flagged
        """
        if tolerance is None:
            tolerance = settings.discrepancy_tolerance

        items_sum = sum(_price_of(item) for item in items)
        calculated_total = round_currency(
            items_sum + (taxes or 0.0) + (other_charges or 0.0) - (discount or 0.0)
        )
        receipt_total = round_currency(total_cost)
        difference = round_currency(abs(calculated_total - receipt_total))

        flag = difference > tolerance
        message = None
        if flag:
            message = (
                f"Receipt total ({format_currency(receipt_total)}) differs from calculated total "
                f"({format_currency(calculated_total)}) by {format_currency(difference)}. "
                "This may indicate missing items, fees, or rounding differences."
            )

        return DiscrepancyCheck(
            flag=flag,
            message=message,
            calculated_total=calculated_total,
            difference=difference,
        )

    def apply_discrepancy(self, bill: Bill) -> Bill:
        """Return a copy of `bill` with its discrepancy flag and message refreshed"""
        check = self.calculate_discrepancy(
            bill.items, bill.total_cost, bill.taxes, bill.other_charges, bill.discount
        )
        if check.flag:
            logger.warning(f"Discrepancy detected for {bill.store_name}: {check.message}")
        return bill.model_copy(
            update={"discrepancy_flag": check.flag, "discrepancy_message": check.message}
        )

    def calculate_equal_split(self, price: float, member_ids: List[str]) -> PriceCalculation:
        if not member_ids:
            return PriceCalculation(equal_split_amount=0.0, custom_amounts={}, total_allocated=0.0)

        share = price / len(member_ids)
        return PriceCalculation(
            equal_split_amount=share,
            custom_amounts={member_id: share for member_id in member_ids},
            total_allocated=price,
        )

    def calculate_custom_split(self, price: float, custom_amounts: Dict[str, float]) -> PriceCalculation:
        # Amounts are trusted here; the validators check them against the price
        total_allocated = sum(custom_amounts.values())
        equal_split_amount = total_allocated / len(custom_amounts) if custom_amounts else 0.0
        return PriceCalculation(
            equal_split_amount=equal_split_amount,
            custom_amounts=dict(custom_amounts),
            total_allocated=total_allocated,
        )

    def allocate_split(self, price: float, split: ChargeSplit) -> Dict[str, float]:
        """Each member's raw share of one item or charge"""
        if split.split_type == SplitType.CUSTOM and split.custom_amounts:
            return self.calculate_custom_split(price, split.custom_amounts).custom_amounts
        return self.calculate_equal_split(price, split.shared_by).custom_amounts

    def calculate_equal_split_with_cents(self, total_amount: float, member_count: int) -> List[float]:
        """Split in whole cents; the first `remainder` members carry one extra cent."""
        if member_count <= 0:
            return []

        total_cents = int(Decimal(str(total_amount)).quantize(CENTS, rounding=ROUND_HALF_UP) * 100)
        base_cents, remainder_cents = divmod(total_cents, member_count)
        return [
            (base_cents + (1 if i < remainder_cents else 0)) / 100
            for i in range(member_count)
        ]

    def distribute_remaining_amount(
        self,
        remaining_amount: float,
        member_ids: List[str],
        current_allocations: Dict[str, float],
    ) -> Dict[str, float]:
        if not member_ids or remaining_amount <= 0:
            return current_allocations

        equal_share = remaining_amount / len(member_ids)
        new_allocations = dict(current_allocations)
        for member_id in member_ids:
            new_allocations[member_id] = new_allocations.get(member_id, 0.0) + equal_share
        return new_allocations

    def aggregate_member_totals(
        self,
        bill: Bill,
        item_splits: List[ItemSplit],
        member_ids: List[str],
        tax_split: Optional[ChargeSplit] = None,
        other_charges_split: Optional[ChargeSplit] = None,
    ) -> Dict[str, float]:
        """Raw (unrounded) amount per selected member across items, tax and other charges"""
        totals = {member_id: 0.0 for member_id in member_ids}
        splits_by_item = {split.item_id: split for split in item_splits}

        def add_shares(shares: Dict[str, float]) -> None:
            for member_id, share in shares.items():
                # Members outside the selected set are not billed
                if member_id in totals:
                    totals[member_id] += share

        for index, item in enumerate(bill.items):
            split = splits_by_item.get(item_id(index))
            if split is None or not split.assigned_members():
                continue
            add_shares(self.allocate_split(item.price, split))

        for amount, split in ((bill.taxes, tax_split), (bill.other_charges, other_charges_split)):
            if (amount or 0.0) > 0 and split is not None and split.assigned_members():
                add_shares(self.allocate_split(amount, split))

        return totals

    def reconcile_remainder(
        self,
        raw_totals: Dict[str, float],
        total_cost: float,
        member_order: List[str],
    ) -> List[FinalSplit]:
        """
        Round every member's amount to cents and make them sum to the total exactly

        All members but the last in `member_order` are rounded independently; the
        last one is assigned whatever is left of the rounded total. The order is the
        caller's and is never reshuffled.
        """
        if not member_order:
            return []

        target_total = round_currency(total_cost)
        final_splits = []
        allocated = 0.0
        for member_id in member_order[:-1]:
            amount = round_currency(raw_totals.get(member_id, 0.0))
            allocated += amount
            final_splits.append(FinalSplit(user_id=member_id, amount_owed=amount))

        last_member = member_order[-1]
        remainder = round_currency(target_total - allocated)
        final_splits.append(FinalSplit(user_id=last_member, amount_owed=remainder))

        residual = round_currency(remainder - raw_totals.get(last_member, 0.0))
        if residual:
            logger.debug(f"Member {last_member} absorbs a rounding residual of {residual:+.2f}")

        return final_splits

    def calculate_final_splits(
        self,
        bill: Bill,
        item_splits: List[ItemSplit],
        members: List[Union[Member, str]],
        tax_split: Optional[ChargeSplit] = None,
        other_charges_split: Optional[ChargeSplit] = None,
    ) -> List[FinalSplit]:
        """
        Produce what each selected member owes for the bill

        Raw per-member totals are scaled proportionally onto the bill's total cost,
        which spreads the discount (and anything left unassigned) across members in
        proportion to what they consumed. If nothing was assigned at all, the total
        is shared equally. The result is reconciled so it sums to the total exactly.
        """
        member_ids = [member.id if isinstance(member, Member) else member for member in members]
        raw_totals = self.aggregate_member_totals(
            bill, item_splits, member_ids, tax_split, other_charges_split
        )

        gross_total = sum(raw_totals.values())
        target_total = bill.total_cost

        if gross_total == 0:
            per_member = target_total / len(member_ids) if member_ids else 0.0
            scaled = {member_id: per_member for member_id in member_ids}
        else:
            scaled = {
                member_id: (raw_totals[member_id] / gross_total) * target_total
                for member_id in member_ids
            }

        final_splits = self.reconcile_remainder(scaled, target_total, member_ids)

        logger.info(f"--- Split for {bill.store_name} ({format_currency(target_total)}) ---")
        for split in final_splits:
            logger.info(f"  {split.user_id}: {format_currency(split.amount_owed)}")

        return final_splits


# Global service instance
expense_calculation_service = ExpenseCalculationService()
