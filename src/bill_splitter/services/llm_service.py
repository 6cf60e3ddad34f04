"""Receipt extraction through a vision LLM"""
from typing import List, Optional, Tuple
from loguru import logger
from pydantic_ai import Agent, BinaryContent

from ..core.config import settings
from ..core.errors import AIServiceError, ExtractionValidationError
from ..core.llm_factory import get_model, LLMProviderType
from ..models.bill_models import Bill, ExtractedReceipt, ReceiptItem
from .expense_calculations import expense_calculation_service, round_currency

EXTRACTION_PROMPT = """
You are an expert receipt data extraction system. Analyze the provided receipt image(s) and extract
information with high accuracy. Extract ONLY what is clearly visible on the receipt - do not guess.

IMPORTANT: You may receive multiple images of the same receipt (different pages, angles, or sections).
Analyze ALL images together and never list the same item twice.

1. store_name: the exact business name printed on the receipt header.
2. date: the transaction date in YYYY-MM-DD format, only if clearly visible.
3. items: purchased items only.
   - name: the item name as printed.
   - price: the FINAL line total (unit price x quantity), never the unit price.
   - quantity: the quantity if greater than 1, otherwise 1.
   - Do NOT include subtotals, tax lines, fee lines, discounts or summary lines as items.
4. total_cost: the final amount charged ("Total", "Amount Due", "Amount Paid").
5. taxes: explicitly labelled tax amounts only.
6. other_charges: service fees, delivery fees and tips if explicitly listed.
7. discount: promotional discounts, coupons or credits, as a positive number.

Double-check that items + taxes + other_charges - discount matches total_cost.
Ignore any text that is not on the receipt paper. Do NOT invent fields or values.
"""


class LLMService:
    def __init__(self, model=None):
        """Build the extraction agent; `model` defaults to the configured provider model"""
        if model is None:
            model = get_model(
                model_name=settings.llm_model_name,
                provider_type=LLMProviderType(settings.llm_provider),
            )

        self.receipt_agent = Agent(
            model,
            output_type=ExtractedReceipt,
            output_retries=settings.llm_output_retries,
        )

        @self.receipt_agent.instructions
        def receipt_extraction_prompt() -> str:
            return EXTRACTION_PROMPT

        logger.info("LLM Service initialized successfully")

    async def extract_receipt(self, images: List[Tuple[bytes, str]]) -> Bill:
        """
        Extract a bill from one or more receipt images

        Args:
            images: (image bytes, media type) pairs of the same receipt

        Returns:
            Bill with its discrepancy flag and message set

        Raises:
            AIServiceError: the model call failed
            ExtractionValidationError: the model returned an unusable receipt
        """
        logger.info(f"Extracting receipt data from {len(images)} image(s)")

        messages = [f"Extract the receipt data from these {len(images)} image(s)."]
        for data, media_type in images:
            messages.append(BinaryContent(data=data, media_type=media_type))

        try:
            result = await self.receipt_agent.run(messages)
        except Exception as e:
            logger.error(f"Error in LLM processing: {e}")
            raise AIServiceError(f"Receipt extraction failed: {e}", cause=e) from e

        return self.build_bill(result.output)

    def build_bill(self, receipt: ExtractedReceipt) -> Bill:
        """Validate raw model output and turn it into a Bill"""
        if not receipt.items:
            raise ExtractionValidationError("No items were extracted from the receipt")
        if receipt.total_cost <= 0:
            raise ExtractionValidationError("Invalid total cost extracted from receipt")

        def optional_amount(value: Optional[float]) -> Optional[float]:
            return round_currency(value) if value is not None else None

        bill = Bill(
            store_name=receipt.store_name.strip() or settings.default_store_name,
            date=receipt.date,
            items=[
                ReceiptItem(name=item.name, price=round_currency(item.price), quantity=item.quantity)
                for item in receipt.items
            ],
            taxes=optional_amount(receipt.taxes),
            other_charges=optional_amount(receipt.other_charges),
            discount=optional_amount(receipt.discount),
            total_cost=round_currency(receipt.total_cost),
        )
        bill = expense_calculation_service.apply_discrepancy(bill)
        logger.info(f"Extracted {len(bill.items)} item(s) from {bill.store_name}, total {bill.total_cost:.2f}")
        return bill


_llm_service: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    """Lazily built global service instance"""
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service
