"""Exceptions raised by the external collaborator adapters"""
from typing import Any, Optional


class BillSplitterError(Exception):
    code = "BILL_SPLITTER_ERROR"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ReceiptExtractionError(BillSplitterError):
    code = "RECEIPT_EXTRACTION_ERROR"


class ExtractionValidationError(ReceiptExtractionError):
    code = "VALIDATION_ERROR"


class AIServiceError(ReceiptExtractionError):
    code = "AI_SERVICE_ERROR"


class ImageProcessingError(ReceiptExtractionError):
    code = "IMAGE_PROCESSING_ERROR"


class ConfigurationError(BillSplitterError):
    code = "CONFIGURATION_ERROR"


class SplitwiseAPIError(BillSplitterError):
    code = "SPLITWISE_API_ERROR"

    def __init__(self, message: str, status: int, details: Any = None):
        super().__init__(message)
        self.status = status
        self.details = details


class FlowTransitionError(ValueError):
    """A flow reducer was fired from a step that does not accept it."""
