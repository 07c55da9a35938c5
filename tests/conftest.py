"""
Pytest Configuration and Fixtures
==================================
Shared fixtures for the extraction test suite.
"""

import asyncio
import json
from typing import Any, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from cascade_extractor.config import Settings
from cascade_extractor.llm_client import ModelAdapter
from cascade_extractor.models import AcquisitionResult, ExtractionRequest, FieldSpec


SAMPLE_COF_TEXT = """Certificate of Fulfillment
DocuSign Certificate Complete

Customer Details
Company Name: Acme Cloud Solutions
Opportunity Name: Global Enterprise Migration
Region: EMEA
Contract Period: 36 months
Currency: USD
Floor price: $1,250,000
POC: jane.doe@acme.com

Fees & Payment Terms
Payment is due within 30 days. Late fee: $75 per invoice.
Floor amount: 99

Signed Date: 2024-01-15
"""


class FakeAdapter(ModelAdapter):
    """Scripted model adapter that records its calls"""

    def __init__(self, name: str, priority: int, response: Any = None,
                 error: Optional[Exception] = None, delay: float = 0):
        self.name = name
        self.priority = priority
        self.model = "fake-model"
        self.response = response
        self.error = error
        self.delay = delay
        self.calls = 0
        self.prompts: List[str] = []

    async def call(self, prompt: str) -> str:
        self.calls += 1
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if isinstance(self.response, str):
            return self.response
        return "Here is the extracted data:\n" + json.dumps(self.response)


# =============================================================================
# DATA FIXTURES
# =============================================================================

@pytest.fixture
def cof_fields():
    """The CoF field set extracted from fulfillment certificates."""
    return [
        FieldSpec("pod", "POD", "Region designation (NA, EMEA, APAC, LATAM)"),
        FieldSpec("company_name", "Company Name", "Client company name"),
        FieldSpec("opportunity_name", "Opportunity Name", "Deal or opportunity title"),
        FieldSpec("period", "Period", "Contract period in months"),
        FieldSpec("currency", "Currency", "Currency code"),
        FieldSpec("floor_amount_match", "Floor Amount Match", "Minimum contract value threshold"),
        FieldSpec("poc", "POC", "Point of contact email address"),
        FieldSpec("signed_date_formatted", "Signed Date Formatted", "Document signature date"),
    ]


@pytest.fixture
def sample_text():
    return SAMPLE_COF_TEXT


@pytest.fixture
def complete_response():
    """A model payload where every critical CoF field is valid."""
    return {
        "pod": "emea",
        "company_name": "Acme Cloud Solutions",
        "opportunity_name": "Global Enterprise Migration",
        "period": "36 months",
        "currency": "$",
        "floor_amount_match": "$1,250,000",
        "poc": "jane.doe@acme.com",
        "signed_date_formatted": "2024-01-15",
    }


@pytest.fixture
def cof_request(cof_fields, sample_text):
    return ExtractionRequest(
        document_text=sample_text,
        fields=cof_fields,
        file_name="acme_cof.pdf",
        document_type="CoF",
        document_path="/docs/acme_cof.pdf",
    )


# =============================================================================
# COMPONENT FIXTURES
# =============================================================================

@pytest.fixture
def settings():
    """Settings with no credentials and no batch delay."""
    return Settings(batch_delay=0, adapter_timeout=1.0)


@pytest.fixture
def make_adapter():
    """Factory for scripted adapters."""
    def _make(name: str, priority: int, response: Any = None,
              error: Optional[Exception] = None, delay: float = 0) -> FakeAdapter:
        return FakeAdapter(name, priority, response=response, error=error, delay=delay)
    return _make


@pytest.fixture
def mock_ocr():
    """OCR service mock that finds nothing by default."""
    mock = MagicMock()
    mock.acquire_text = AsyncMock(return_value=AcquisitionResult(
        success=False, error="No text could be extracted from the document using OCR"
    ))
    return mock
