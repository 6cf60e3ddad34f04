from fastapi import APIRouter, File, UploadFile, HTTPException
from typing import List
from loguru import logger

from ....core.config import settings
from ....core.errors import BillSplitterError
from ....models.bill_models import DiscrepancyCheck, FinalizeCheck, ValidationResult
from ....models.response_models import (
    CanFinalizeRequest,
    DiscrepancyRequest,
    ExtractBillResponse,
    FinalSplitsRequest,
    FinalSplitsResponse,
    HealthResponse,
    ValidateSplitsRequest,
)
from ....services.expense_calculations import expense_calculation_service
from ....services.llm_service import get_llm_service
from ....services.validation_service import validation_service

router = APIRouter()


@router.post("/extract", response_model=ExtractBillResponse)
async def extract_bill(files: List[UploadFile] = File(...)):
    """
    Extract store, items and totals from uploaded receipt images
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")

    for file in files:
        if file.content_type not in settings.allowed_file_types:
            raise HTTPException(
                status_code=400,
                detail=f"File type {file.content_type} not allowed"
            )

        if file.size is not None and file.size > settings.max_file_size:
            raise HTTPException(
                status_code=400,
                detail="File size exceeds maximum allowed size"
            )

    images = []
    for file in files:
        content = await file.read()
        images.append((content, file.content_type))

    try:
        bill = await get_llm_service().extract_receipt(images)
    except BillSplitterError as e:
        logger.error(f"Error extracting bill: {e}")
        return ExtractBillResponse(
            success=False,
            message="Failed to extract bill",
            error=f"{e.code}: {e.message}"
        )

    return ExtractBillResponse(
        success=True,
        message="Bill extracted successfully",
        bill=bill
    )


@router.post("/discrepancy", response_model=DiscrepancyCheck)
async def check_discrepancy(request: DiscrepancyRequest):
    """
    Compare the receipt total with items + tax + other charges - discount
    """
    return expense_calculation_service.calculate_discrepancy(
        request.items,
        request.total_cost,
        taxes=request.taxes,
        other_charges=request.other_charges,
        discount=request.discount,
        tolerance=request.tolerance,
    )


@router.post("/final-splits", response_model=FinalSplitsResponse)
async def calculate_final_splits(request: FinalSplitsRequest):
    """
    Calculate what each member owes, reconciled to the bill total
    """
    validation = validation_service.validate_receipt_splits(
        request.bill, request.item_splits, request.tax_split, request.other_charges_split
    )
    if not validation.is_valid:
        return FinalSplitsResponse(success=False, message="; ".join(validation.errors))

    final_splits = expense_calculation_service.calculate_final_splits(
        request.bill,
        request.item_splits,
        request.members,
        request.tax_split,
        request.other_charges_split,
    )
    bill = request.bill
    discrepancy = expense_calculation_service.calculate_discrepancy(
        bill.items, bill.total_cost, bill.taxes, bill.other_charges, bill.discount
    )

    return FinalSplitsResponse(
        success=True,
        message="Split calculated successfully",
        final_splits=final_splits,
        check=validation_service.validate_final_splits(final_splits, bill.total_cost),
        discrepancy=discrepancy,
    )


@router.post("/validate-splits", response_model=ValidationResult)
async def validate_splits(request: ValidateSplitsRequest):
    return validation_service.validate_receipt_splits(
        request.bill, request.item_splits, request.tax_split, request.other_charges_split
    )


@router.post("/can-finalize", response_model=FinalizeCheck)
async def can_finalize(request: CanFinalizeRequest):
    return validation_service.can_finalize_expense(
        request.bill, request.final_splits, request.payer_id
    )


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        message="Bill Splitter API is running",
        version=settings.app_version,
    )
