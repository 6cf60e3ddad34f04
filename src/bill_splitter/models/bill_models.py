from datetime import datetime
from enum import Enum
from typing import Any, Optional, Dict, List, Union
from pydantic import BaseModel, Field


class SplitType(str, Enum):
    EQUAL = "equal"
    CUSTOM = "custom"


class ExpenseType(str, Enum):
    SCAN = "scan"
    MANUAL = "manual"


class ReceiptItem(BaseModel):
    """Receipt line. `price` is the line total (unit price x quantity)."""
    name: str
    price: float
    quantity: int = 1


def item_id(index: int) -> str:
    """Stable identifier of the item at `index` within its bill."""
    return f"item-{index}"


class Bill(BaseModel):
    store_name: str
    date: str  # YYYY-MM-DD
    items: List[ReceiptItem]
    taxes: Optional[float] = None
    other_charges: Optional[float] = None
    discount: Optional[float] = None
    total_cost: float
    discrepancy_flag: bool = False
    discrepancy_message: Optional[str] = None


class ChargeSplit(BaseModel):
    """Who shares a cost and how. Used directly for tax and other charges."""
    shared_by: List[str] = Field(default_factory=list)
    split_type: SplitType = SplitType.EQUAL
    custom_amounts: Optional[Dict[str, float]] = None

    def assigned_members(self) -> List[str]:
        if self.split_type == SplitType.CUSTOM and self.custom_amounts:
            return list(self.custom_amounts.keys())
        return list(self.shared_by)


class ItemSplit(ChargeSplit):
    item_id: str
    price: Optional[float] = None


class Member(BaseModel):
    id: str
    first_name: str = ""
    last_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.id


class FinalSplit(BaseModel):
    user_id: str
    amount_owed: float


class PriceCalculation(BaseModel):
    equal_split_amount: float
    custom_amounts: Dict[str, float]
    total_allocated: float


class DiscrepancyCheck(BaseModel):
    flag: bool
    message: Optional[str] = None
    calculated_total: float = 0.0
    difference: float = 0.0


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=errors)


class FinalSplitCheck(BaseModel):
    is_valid: bool
    calculated_total: float
    difference: float


class FinalizeCheck(BaseModel):
    can_finalize: bool
    reason: Optional[str] = None


class PayloadCheck(BaseModel):
    is_valid: bool
    error: Optional[str] = None


class ManualExpenseData(BaseModel):
    title: str
    amount: float
    date: str
    notes: Optional[str] = None
    members: List[Member] = Field(default_factory=list)
    split_type: SplitType = SplitType.EQUAL


class ExpenseDetailsInput(BaseModel):
    """Raw manual-expense form values, before they are known to be valid."""
    title: Optional[str] = None
    amount: Optional[Union[float, str]] = None
    date: Optional[str] = None
    notes: Optional[str] = None
    members: List[Member] = Field(default_factory=list)


class ExtractedReceipt(BaseModel):
    """Structured output requested from the receipt extraction model."""
    store_name: str = Field(description="The name of the store as printed on the receipt header.")
    date: str = Field(description="The date of the purchase (YYYY-MM-DD).")
    items: List[ReceiptItem] = Field(description="Purchased items, each priced at its final line total.")
    total_cost: float = Field(description="The total cost of the bill as printed on the receipt.")
    taxes: Optional[float] = Field(default=None, description="Explicitly labelled taxes, if any.")
    other_charges: Optional[float] = Field(default=None, description="Service, delivery or tip charges, if any.")
    discount: Optional[float] = Field(default=None, description="Total discount as a positive number, if any.")


class FlowStateSnapshot(BaseModel):
    """Resume point of an expense-creation session, one per (user, bill)."""
    flow: str
    current_step: int
    bill_data: Optional[Dict[str, Any]] = None
    preview_image_url: Optional[str] = None
    updated_at: Optional[datetime] = None
    bill_id: Optional[str] = None
    is_last_active: bool = False
    store_name: Optional[str] = None
    total_amount: Optional[float] = None
