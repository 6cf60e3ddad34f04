import asyncio

import pytest
from pydantic_ai.models.test import TestModel as ScriptedModel

from bill_splitter.core.errors import AIServiceError, ExtractionValidationError
from bill_splitter.models.bill_models import ExtractedReceipt, ReceiptItem
from bill_splitter.services.llm_service import LLMService

RECEIPT = {
    "store_name": "Corner Cafe",
    "date": "2026-10-12",
    "items": [
        {"name": "Latte", "price": 4.5, "quantity": 1},
        {"name": "Bagel", "price": 3.0, "quantity": 2},
    ],
    "total_cost": 8.1,
    "taxes": 0.6,
}


@pytest.fixture
def service():
    return LLMService(model=ScriptedModel(custom_output_args=RECEIPT))


def test_extract_receipt(service):
    bill = asyncio.run(service.extract_receipt([(b"\x89PNG fake", "image/png")]))

    assert bill.store_name == "Corner Cafe"
    assert [item.name for item in bill.items] == ["Latte", "Bagel"]
    assert bill.items[1].quantity == 2
    assert bill.total_cost == 8.1
    assert bill.discrepancy_flag is False


def test_model_failure_becomes_ai_service_error(service):
    class FailingAgent:
        async def run(self, messages):
            raise RuntimeError("rate limited")

    service.receipt_agent = FailingAgent()

    with pytest.raises(AIServiceError) as exc_info:
        asyncio.run(service.extract_receipt([(b"data", "image/jpeg")]))

    assert exc_info.value.code == "AI_SERVICE_ERROR"
    assert isinstance(exc_info.value.cause, RuntimeError)


def test_build_bill_rounds_and_flags(service):
    receipt = ExtractedReceipt(
        store_name="   ",
        date="2026-10-12",
        items=[ReceiptItem(name="Soup", price=5.555), ReceiptItem(name="Bread", price=2.0)],
        total_cost=12.0,
        discount=0.004,
    )

    bill = service.build_bill(receipt)

    assert bill.store_name == "Unknown Store"
    assert bill.items[0].price == 5.56
    assert bill.discount == 0.0
    assert bill.discrepancy_flag is True
    assert "$4.44" in bill.discrepancy_message


def test_build_bill_rejects_empty_receipt(service):
    with pytest.raises(ExtractionValidationError, match="No items"):
        service.build_bill(ExtractedReceipt(store_name="Cafe", date="2026-10-12", items=[], total_cost=5.0))


def test_build_bill_rejects_non_positive_total(service):
    receipt = ExtractedReceipt(
        store_name="Cafe", date="2026-10-12", items=[ReceiptItem(name="Tea", price=2.0)], total_cost=0
    )

    with pytest.raises(ExtractionValidationError) as exc_info:
        service.build_bill(receipt)

    assert exc_info.value.code == "VALIDATION_ERROR"
