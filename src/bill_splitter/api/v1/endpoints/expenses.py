from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from loguru import logger

from ....core.dependencies import get_splitwise_client
from ....core.errors import SplitwiseAPIError
from ....models.bill_models import ExpenseDetailsInput, ValidationResult
from ....models.response_models import (
    CreateExpenseResponse,
    CustomAmountsRequest,
    ExpensePayloadRequest,
    ExpensePayloadResponse,
    ManualSplitsRequest,
)
from ....services.expense_payload import expense_payload_service
from ....services.form_validation_service import form_validation_service
from ....services.splitwise_client import SplitwiseClient, validate_expense_data
from ....services.validation_service import validation_service

router = APIRouter()


@router.post("/validate-details", response_model=ValidationResult)
async def validate_details(data: ExpenseDetailsInput):
    return form_validation_service.validate_expense_details(data)


@router.post("/validate-custom-amounts", response_model=ValidationResult)
async def validate_custom_amounts(request: CustomAmountsRequest):
    return validation_service.validate_custom_amounts(
        request.custom_amounts, request.expected_total, request.tolerance
    )


@router.post("/validate-manual-splits", response_model=ValidationResult)
async def validate_manual_splits(request: ManualSplitsRequest):
    return validation_service.validate_manual_splits(
        request.amount, request.split_type, request.custom_amounts
    )


@router.post("/payload", response_model=ExpensePayloadResponse)
async def build_payload(request: ExpensePayloadRequest):
    """
    Build the Splitwise create_expense payload and notes for a reviewed split
    """
    notes = request.expense_notes
    if notes is None:
        notes = (
            expense_payload_service.generate_expense_notes(request.bill, request.store_name, request.date)
            if request.bill is not None else ""
        )

    payload = expense_payload_service.generate_expense_payload(
        request.final_splits,
        request.total_cost,
        request.store_name,
        request.date,
        notes,
        request.payer_id,
        request.group_id,
    )
    return ExpensePayloadResponse(
        payload=payload,
        notes=notes,
        check=expense_payload_service.validate_expense_payload(payload, request.total_cost),
    )


@router.post("", response_model=CreateExpenseResponse)
def create_expense(
    payload: Dict[str, Any] = Body(...),
    client: SplitwiseClient = Depends(get_splitwise_client),
):
    """
    Submit a create_expense payload to Splitwise
    """
    validation = validate_expense_data(payload)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail="; ".join(validation.errors))

    try:
        result = client.create_expense(payload)
    except SplitwiseAPIError as e:
        logger.error(f"Error creating expense: {e}")
        raise HTTPException(status_code=e.status, detail=e.message)

    expenses = result.get("expenses") or []
    return CreateExpenseResponse(
        success=True,
        message="Expense created successfully",
        expense=expenses[0] if expenses else result,
    )
