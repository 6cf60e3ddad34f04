from datetime import date as calendar_date
from pydantic import BaseModel, Field, field_validator
from typing import Any, Optional, Dict, List
from .bill_models import (
    Bill,
    ChargeSplit,
    DiscrepancyCheck,
    FinalSplit,
    FinalSplitCheck,
    FlowStateSnapshot,
    ItemSplit,
    Member,
    PayloadCheck,
    ReceiptItem,
    SplitType,
)


class ExtractBillResponse(BaseModel):
    success: bool
    message: str
    bill: Optional[Bill] = None
    error: Optional[str] = None


class DiscrepancyRequest(BaseModel):
    items: List[ReceiptItem]
    total_cost: float
    taxes: Optional[float] = None
    other_charges: Optional[float] = None
    discount: Optional[float] = None
    tolerance: Optional[float] = Field(default=None, ge=0)


class FinalSplitsRequest(BaseModel):
    bill: Bill
    item_splits: List[ItemSplit]
    members: List[Member] = Field(min_length=1)
    tax_split: Optional[ChargeSplit] = None
    other_charges_split: Optional[ChargeSplit] = None


class FinalSplitsResponse(BaseModel):
    success: bool
    message: str
    final_splits: List[FinalSplit] = Field(default_factory=list)
    check: Optional[FinalSplitCheck] = None
    discrepancy: Optional[DiscrepancyCheck] = None


class ValidateSplitsRequest(BaseModel):
    bill: Bill
    item_splits: List[ItemSplit]
    tax_split: Optional[ChargeSplit] = None
    other_charges_split: Optional[ChargeSplit] = None


class CanFinalizeRequest(BaseModel):
    bill: Bill
    final_splits: List[FinalSplit]
    payer_id: Optional[str] = None


class CustomAmountsRequest(BaseModel):
    custom_amounts: Dict[str, float]
    expected_total: float
    tolerance: Optional[float] = Field(default=None, ge=0)


class ManualSplitsRequest(BaseModel):
    amount: float
    split_type: SplitType = SplitType.EQUAL
    custom_amounts: Optional[Dict[str, float]] = None


class ExpensePayloadRequest(BaseModel):
    final_splits: List[FinalSplit] = Field(min_length=1)
    total_cost: float = Field(gt=0)
    store_name: str = Field(min_length=1, max_length=200)
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    payer_id: str
    group_id: Optional[int] = Field(default=None, ge=0)
    expense_notes: Optional[str] = None
    bill: Optional[Bill] = None

    @field_validator("date")
    @classmethod
    def check_calendar_date(cls, value: str) -> str:
        # The pattern admits impossible days such as 2026-02-30
        calendar_date.fromisoformat(value)
        return value


class ExpensePayloadResponse(BaseModel):
    payload: Dict[str, Any]
    notes: str
    check: PayloadCheck


class CreateExpenseResponse(BaseModel):
    success: bool
    message: str
    expense: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class SaveFlowStateRequest(BaseModel):
    flow: str
    current_step: int = Field(ge=0)
    bill_data: Optional[Dict[str, Any]] = None
    preview_image_url: Optional[str] = None


class FlowStateResponse(BaseModel):
    data: Optional[FlowStateSnapshot] = None


class FlowStateListResponse(BaseModel):
    data: List[FlowStateSnapshot] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    message: str
    version: str
