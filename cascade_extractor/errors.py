"""Exceptions raised across the extraction pipeline"""
from typing import Any, Dict, Optional


class ExtractorError(Exception):
    """Base exception for all extractor errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ProviderUnavailable(ExtractorError):
    """Provider credential missing or malformed; the adapter is not configured"""


class ProviderCallFailed(ExtractorError):
    """Network, auth, rate limit or timeout failure during a provider call"""


class ParseFailure(ProviderCallFailed):
    """Provider response did not contain a JSON object"""


class AcquisitionFailed(ExtractorError):
    """Text conversion or OCR produced no text"""


class NoDocumentPathError(AcquisitionFailed):
    """Document text is empty and no path is available for OCR"""


class EndOfDocument(ExtractorError):
    """Renderer was asked for a page beyond the last one"""


class FatalOrchestratorError(ExtractorError):
    """Unexpected fault inside the orchestrator"""
