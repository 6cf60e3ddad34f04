"""Splitwise create_expense payload and notes generation"""
from datetime import date, datetime
from typing import Dict, List, Any, Optional, Union
from loguru import logger

from ..core.config import settings
from ..models.bill_models import Bill, FinalSplit, PayloadCheck
from .expense_calculations import expense_calculation_service, format_currency, round_currency

PAYLOAD_TOLERANCE = 0.005


def format_to_local_date_string(value: Union[str, date, datetime]) -> str:
    """YYYY-MM-DD for date strings, dates and datetimes (local time)."""
    if isinstance(value, datetime):
        return value.astimezone().date().isoformat() if value.tzinfo else value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if len(value) == 10:
        return date.fromisoformat(value).isoformat()
    return format_to_local_date_string(datetime.fromisoformat(value.replace("Z", "+00:00")))


def _external_id(user_id: str) -> Union[int, str]:
    return int(user_id) if str(user_id).isdigit() else user_id


class ExpensePayloadService:
    def generate_expense_payload(
        self,
        final_splits: List[FinalSplit],
        total_cost: float,
        store_name: str,
        date_value: Union[str, date],
        expense_notes: str,
        payer_id: str,
        group_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Build the form body for Splitwise's create_expense

        Owed shares are re-reconciled so they add up to the cost exactly; the
        payer's paid share is the full cost. Group 0 means a non-group expense.
        """
        member_order = [split.user_id for split in final_splits]
        raw_totals = {split.user_id: split.amount_owed for split in final_splits}
        adjusted = expense_calculation_service.reconcile_remainder(raw_totals, total_cost, member_order)

        cost = f"{round_currency(total_cost):.2f}"
        payload: Dict[str, Any] = {
            "cost": cost,
            "description": store_name,
            "group_id": group_id or 0,
            "date": format_to_local_date_string(date_value),
            "details": expense_notes,
            "currency_code": settings.currency_code,
            "category_id": settings.default_category_id,
            "split_equally": False,
        }

        for index, split in enumerate(adjusted):
            paid_share = cost if str(split.user_id) == str(payer_id) else "0.00"
            payload[f"users__{index}__user_id"] = _external_id(split.user_id)
            payload[f"users__{index}__paid_share"] = paid_share
            payload[f"users__{index}__owed_share"] = f"{split.amount_owed:.2f}"

        logger.info(f"Generated expense payload for {store_name}: {cost} across {len(adjusted)} member(s)")
        return payload

    def generate_expense_notes(self, bill: Bill, store_name: str, date_value: Union[str, date]) -> str:
        subtotal = sum(item.price for item in bill.items)
        lines = [
            f"Store: {store_name}",
            f"Date: {format_to_local_date_string(date_value)}",
            "",
            f"Items Subtotal: {format_currency(subtotal)}",
        ]
        lines.extend(f"- {item.name}: {format_currency(item.price)}" for item in bill.items)

        if (bill.taxes or 0) > 0:
            lines.append(f"Tax: {format_currency(bill.taxes)}")
        if (bill.other_charges or 0) > 0:
            lines.append(f"Other Charges: {format_currency(bill.other_charges)}")
        if (bill.discount or 0) > 0:
            lines.append(f"Discount Applied: -{format_currency(bill.discount)}")

        lines.append("")
        lines.append(f"Grand Total (on receipt): {format_currency(bill.total_cost)}")
        if bill.discrepancy_flag:
            lines.append("")
            lines.append(f"Note: Original bill data discrepancy: {bill.discrepancy_message}")
        return "\n".join(lines)

    def validate_expense_payload(self, payload: Dict[str, Any], total_cost: float) -> PayloadCheck:
        cost = float(payload.get("cost", 0))
        if abs(cost - total_cost) > PAYLOAD_TOLERANCE:
            return PayloadCheck(
                is_valid=False,
                error=f"Validation Error: Split total ({format_currency(cost)}) "
                      f"doesn't match bill total ({format_currency(total_cost)}).",
            )

        owed_shares = [float(value) for key, value in payload.items() if key.endswith("__owed_share")]
        if any(share < 0 for share in owed_shares):
            return PayloadCheck(
                is_valid=False,
                error="Validation Error: Owed shares cannot be negative.",
            )

        owed_total = round_currency(sum(owed_shares))
        if abs(owed_total - total_cost) > PAYLOAD_TOLERANCE:
            return PayloadCheck(
                is_valid=False,
                error=f"Validation Error: Owed shares ({format_currency(owed_total)}) "
                      f"don't match bill total ({format_currency(total_cost)}).",
            )

        return PayloadCheck(is_valid=True)


# Global service instance
expense_payload_service = ExpensePayloadService()
