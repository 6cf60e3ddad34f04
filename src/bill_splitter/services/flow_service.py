"""
Expense-creation flow as an explicit state value and pure transitions

The caller owns a `FlowState` and replaces it with whatever a transition
returns; nothing here mutates its argument. Two flows share the first and
last steps:

    scan:   TYPE_SELECTION -> SCAN_UPLOAD -> GROUP_SELECT -> ITEM_SPLIT -> REVIEW
    manual: TYPE_SELECTION -> EXPENSE_DETAILS -> GROUP_SELECT -> SPLIT_CONFIG -> REVIEW

`finalize` then marks the session complete.
"""
from enum import Enum
from typing import Dict, List, Optional, Any
from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import FlowTransitionError
from ..models.bill_models import (
    Bill,
    ChargeSplit,
    ExpenseType,
    FinalSplit,
    FinalizeCheck,
    FlowStateSnapshot,
    ItemSplit,
    ManualExpenseData,
    Member,
    SplitType,
)
from .expense_calculations import expense_calculation_service
from .validation_service import validation_service


class FlowStep(str, Enum):
    TYPE_SELECTION = "type_selection"
    SCAN_UPLOAD = "scan_upload"
    GROUP_SELECT = "group_select"
    ITEM_SPLIT = "item_split"
    EXPENSE_DETAILS = "expense_details"
    SPLIT_CONFIG = "split_config"
    REVIEW = "review"


FLOW_STEPS: Dict[Optional[ExpenseType], List[FlowStep]] = {
    None: [FlowStep.TYPE_SELECTION],
    ExpenseType.SCAN: [
        FlowStep.TYPE_SELECTION,
        FlowStep.SCAN_UPLOAD,
        FlowStep.GROUP_SELECT,
        FlowStep.ITEM_SPLIT,
        FlowStep.REVIEW,
    ],
    ExpenseType.MANUAL: [
        FlowStep.TYPE_SELECTION,
        FlowStep.EXPENSE_DETAILS,
        FlowStep.GROUP_SELECT,
        FlowStep.SPLIT_CONFIG,
        FlowStep.REVIEW,
    ],
}

STEP_NAMES = {
    FlowStep.TYPE_SELECTION: "Expense Type Selection",
    FlowStep.SCAN_UPLOAD: "Receipt Upload",
    FlowStep.GROUP_SELECT: "Group Selection",
    FlowStep.ITEM_SPLIT: "Item Splitting",
    FlowStep.EXPENSE_DETAILS: "Expense Details",
    FlowStep.SPLIT_CONFIG: "Split Configuration",
    FlowStep.REVIEW: "Review & Finalize",
}


class FlowState(BaseModel):
    model_config = ConfigDict(frozen=True)

    expense_type: Optional[ExpenseType] = None
    current_step: int = 0
    is_complete: bool = False

    # Receipt scanning flow
    bill_data: Optional[Bill] = None
    updated_bill_data: Optional[Bill] = None
    item_splits: List[ItemSplit] = Field(default_factory=list)
    tax_split: Optional[ChargeSplit] = None
    other_charges_split: Optional[ChargeSplit] = None

    # Review step
    store_name: str = ""
    date: str = ""
    expense_notes: str = ""
    payer_id: Optional[str] = None

    # Manual expense flow
    manual_expense_data: Optional[ManualExpenseData] = None
    custom_amounts: Optional[Dict[str, float]] = None

    # Shared
    selected_group_id: Optional[str] = None
    selected_members: List[Member] = Field(default_factory=list)

    @property
    def active_bill(self) -> Optional[Bill]:
        return self.updated_bill_data or self.bill_data


class StepValidation(BaseModel):
    can_proceed: bool
    step_name: str
    is_last_step: bool


def flow_steps(state: FlowState) -> List[FlowStep]:
    return FLOW_STEPS[state.expense_type]


def current_step(state: FlowState) -> FlowStep:
    return flow_steps(state)[state.current_step]


def total_steps(state: FlowState) -> int:
    """Steps after type selection."""
    return len(flow_steps(state)) - 1


def _require_step(state: FlowState, expected: FlowStep, action: str) -> None:
    if state.is_complete:
        raise FlowTransitionError(f"Cannot {action}: the flow is already complete")
    if state.expense_type is None and expected != FlowStep.TYPE_SELECTION:
        raise FlowTransitionError(f"Cannot {action}: no expense type selected")
    actual = current_step(state)
    if actual != expected:
        raise FlowTransitionError(f"Cannot {action} at step {actual.value}, expected {expected.value}")


def _advance(state: FlowState, **changes: Any) -> FlowState:
    return state.model_copy(update={**changes, "current_step": state.current_step + 1})


def select_expense_type(state: FlowState, expense_type: ExpenseType) -> FlowState:
    _require_step(state, FlowStep.TYPE_SELECTION, "select expense type")
    return state.model_copy(update={"expense_type": ExpenseType(expense_type), "current_step": 1})


def set_bill_data(state: FlowState, bill: Bill) -> FlowState:
    _require_step(state, FlowStep.SCAN_UPLOAD, "set bill data")
    return _advance(state, bill_data=bill, store_name=bill.store_name, date=bill.date)


def select_group_and_members(state: FlowState, group_id: str, members: List[Member]) -> FlowState:
    _require_step(state, FlowStep.GROUP_SELECT, "select group")
    return _advance(state, selected_group_id=group_id, selected_members=list(members))


def define_splits(
    state: FlowState,
    item_splits: List[ItemSplit],
    tax_split: Optional[ChargeSplit] = None,
    other_charges_split: Optional[ChargeSplit] = None,
    edited_bill: Optional[Bill] = None,
) -> FlowState:
    _require_step(state, FlowStep.ITEM_SPLIT, "define splits")
    changes: Dict[str, Any] = {
        "item_splits": list(item_splits),
        "tax_split": tax_split,
        "other_charges_split": other_charges_split,
    }
    if edited_bill is not None:
        changes["updated_bill_data"] = expense_calculation_service.apply_discrepancy(edited_bill)
    return _advance(state, **changes)


def set_expense_details(state: FlowState, expense_data: ManualExpenseData) -> FlowState:
    _require_step(state, FlowStep.EXPENSE_DETAILS, "set expense details")
    return _advance(
        state,
        manual_expense_data=expense_data,
        store_name=expense_data.title,
        date=expense_data.date,
        expense_notes=expense_data.notes or "",
    )


def configure_split(
    state: FlowState,
    split_type: SplitType,
    custom_amounts: Optional[Dict[str, float]] = None,
) -> FlowState:
    _require_step(state, FlowStep.SPLIT_CONFIG, "configure split")
    if state.manual_expense_data is None:
        raise FlowTransitionError("Cannot configure split without expense details")

    split_type = SplitType(split_type)
    expense_data = state.manual_expense_data.model_copy(
        update={"split_type": split_type, "members": list(state.selected_members)}
    )
    return _advance(
        state,
        manual_expense_data=expense_data,
        custom_amounts=custom_amounts if split_type == SplitType.CUSTOM else None,
    )


def set_review_details(
    state: FlowState,
    store_name: Optional[str] = None,
    date: Optional[str] = None,
    expense_notes: Optional[str] = None,
    payer_id: Optional[str] = None,
) -> FlowState:
    _require_step(state, FlowStep.REVIEW, "edit review details")
    changes = {
        key: value
        for key, value in (
            ("store_name", store_name),
            ("date", date),
            ("expense_notes", expense_notes),
            ("payer_id", payer_id),
        )
        if value is not None
    }
    return state.model_copy(update=changes)


def compute_final_splits(state: FlowState) -> List[FinalSplit]:
    """What each selected member owes for the session's bill or manual expense."""
    if state.expense_type == ExpenseType.SCAN and state.active_bill is not None:
        return expense_calculation_service.calculate_final_splits(
            state.active_bill,
            state.item_splits,
            state.selected_members,
            state.tax_split,
            state.other_charges_split,
        )

    expense_data = state.manual_expense_data
    if state.expense_type == ExpenseType.MANUAL and expense_data is not None:
        member_ids = [member.id for member in state.selected_members]
        if expense_data.split_type == SplitType.CUSTOM and state.custom_amounts:
            raw_totals = state.custom_amounts
        else:
            raw_totals = expense_calculation_service.calculate_equal_split(
                expense_data.amount, member_ids
            ).custom_amounts
        return expense_calculation_service.reconcile_remainder(
            raw_totals, expense_data.amount, member_ids
        )

    return []


def finalize_check(state: FlowState) -> FinalizeCheck:
    if state.expense_type == ExpenseType.SCAN:
        if state.active_bill is None:
            return FinalizeCheck(can_finalize=False, reason="No bill to finalize.")
        return validation_service.can_finalize_expense(
            state.active_bill, compute_final_splits(state), state.payer_id
        )

    if state.expense_type == ExpenseType.MANUAL and state.manual_expense_data is not None:
        if not state.payer_id:
            return FinalizeCheck(can_finalize=False, reason="Please select who paid the bill.")
        expense_data = state.manual_expense_data
        result = validation_service.validate_manual_splits(
            expense_data.amount, expense_data.split_type, state.custom_amounts
        )
        if not result.is_valid:
            return FinalizeCheck(can_finalize=False, reason=result.errors[0])
        return FinalizeCheck(can_finalize=True)

    return FinalizeCheck(can_finalize=False, reason="No expense to finalize.")


def can_proceed(state: FlowState) -> bool:
    if state.is_complete:
        return False

    step = current_step(state)
    if step == FlowStep.TYPE_SELECTION:
        return state.expense_type is not None
    if step == FlowStep.SCAN_UPLOAD:
        return state.bill_data is not None
    if step == FlowStep.GROUP_SELECT:
        return len(state.selected_members) > 0
    if step == FlowStep.ITEM_SPLIT:
        return len(state.item_splits) > 0
    if step == FlowStep.EXPENSE_DETAILS:
        return state.manual_expense_data is not None
    if step == FlowStep.SPLIT_CONFIG:
        expense_data = state.manual_expense_data
        if expense_data is None:
            return False
        return validation_service.validate_manual_splits(
            expense_data.amount, expense_data.split_type, state.custom_amounts
        ).is_valid
    if step == FlowStep.REVIEW:
        return finalize_check(state).can_finalize
    return False


def step_validation(state: FlowState) -> StepValidation:
    step = current_step(state)
    return StepValidation(
        can_proceed=can_proceed(state),
        step_name=STEP_NAMES[step],
        is_last_step=step == FlowStep.REVIEW,
    )


def next_step(state: FlowState) -> FlowState:
    """Advance one step when the current step's guard allows it."""
    if state.expense_type is None or current_step(state) == FlowStep.REVIEW:
        return state
    if not can_proceed(state):
        return state
    return _advance(state)


def finalize(state: FlowState) -> FlowState:
    """Mark the session complete. A blocked review leaves the state unchanged."""
    _require_step(state, FlowStep.REVIEW, "finalize")
    if not finalize_check(state).can_finalize:
        return state
    return state.model_copy(update={"is_complete": True})


def go_back(state: FlowState) -> FlowState:
    if state.is_complete:
        return state
    return state.model_copy(update={"current_step": max(0, state.current_step - 1)})


def edit_step(state: FlowState, step: int) -> FlowState:
    """Jump back to an earlier step; forward jumps and completed flows are ignored."""
    if 0 <= step < state.current_step and not state.is_complete:
        return state.model_copy(update={"current_step": step})
    return state


def restart(state: Optional[FlowState] = None) -> FlowState:
    return FlowState()


def to_snapshot(state: FlowState, bill_id: str = "default", preview_image_url: Optional[str] = None) -> FlowStateSnapshot:
    bill_data: Dict[str, Any] = {"id": bill_id, "state": state.model_dump(mode="json")}

    bill = state.active_bill
    if bill is not None:
        bill_data.update(
            store_name=state.store_name or bill.store_name,
            total=bill.total_cost,
            items=[item.model_dump() for item in bill.items],
            taxes=bill.taxes,
            other_charges=bill.other_charges,
            discount=bill.discount,
        )
    elif state.manual_expense_data is not None:
        bill_data.update(
            store_name=state.manual_expense_data.title,
            total=state.manual_expense_data.amount,
        )

    return FlowStateSnapshot(
        flow=state.expense_type.value if state.expense_type else "NONE",
        current_step=state.current_step,
        bill_data=bill_data,
        preview_image_url=preview_image_url,
        bill_id=bill_id,
    )


def from_snapshot(snapshot: FlowStateSnapshot) -> FlowState:
    saved = (snapshot.bill_data or {}).get("state")
    if not saved:
        return FlowState()
    state = FlowState.model_validate(saved)
    step = min(max(snapshot.current_step, 0), len(flow_steps(state)) - 1)
    return state.model_copy(update={"current_step": step})
