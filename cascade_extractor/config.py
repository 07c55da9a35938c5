"""Configuration settings for the cascade extractor"""
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
from dotenv import load_dotenv

load_dotenv()

# Model configuration
GEMINI_MODEL = "gemini-1.5-pro"
OPENAI_MODEL = "gpt-4-turbo-preview"
ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"
MODEL_MAX_TOKENS = 4000
MODEL_TEMPERATURE = 0.1
ADAPTER_TIMEOUT = 60.0  # seconds per adapter call

# OCR configuration
OCR_DPI = 300  # Rendering resolution tuned for recognition, not display
OCR_MAX_PAGES = 10
OCR_LANGUAGE = "eng"

# Folder scanning
SCAN_MAX_FILES = 500
SCAN_MAX_DEPTH = 10
SCAN_EXTENSION = ".pdf"
SKIP_PREFIXES = (".", "$", "~")
SKIP_DIRS = (
    "node_modules", ".git", ".vscode", "dist", "build", ".next", "__pycache__",
    "temp", "tmp", "cache", "logs", "backup", "system volume information",
    "windows", "program files", "$recycle.bin", "recovery",
)

# Batch processing
BATCH_DELAY = 0.1  # seconds between documents, respects provider rate limits

# Section focusing
MIN_SECTION_LENGTH = 50


@dataclass(frozen=True)
class DocumentProfile:
    """Per document type extraction policy"""
    critical_fields: Tuple[str, ...] = ()
    min_critical: int = 2
    focus_section: Optional[str] = None
    ignore_section: Optional[str] = None
    hints: str = ""


DOCUMENT_PROFILES: Dict[str, DocumentProfile] = {
    "CoF": DocumentProfile(
        critical_fields=("floor_amount_match", "company_name", "opportunity_name"),
        min_critical=2,
        focus_section="Customer Details",
        ignore_section="Fees & Payment Terms",
        hints="""Additional CoF-specific extraction guidelines:
- Remarks: certificate status phrases like "DocuSign Certificate Complete", "Certificate of Fulfillment - Approved"
- POD: region designation (NA, EMEA, APAC, LATAM), often marked with X
- SFDC Opportunity Link Z-: URLs containing "Z-" followed by numbers
- Company Name: names with Corp, Ltd, Inc, Solutions, Systems suffixes
- Opportunity Name: deal names often containing "Enterprise", "Migration", "Expansion", "Partnership"
- Period: number of months (12, 24, 36, 60)
- Currency: USD, EUR, GBP, CAD or symbols $, €, £
- Floor Amount Match: the value following "Floor price" (100, 1250, 5000, etc.)
- ZCompute/ZStorage Discount: percentage values with % symbols
- POC: email addresses (name@company.com)
- Comment: status phrases like "All requirements met", "Completed on schedule"
- Signed Date: signature or DocuSign completion date""",
    ),
    "Invoice": DocumentProfile(
        critical_fields=("invoice_number", "invoice_date", "total_amount"),
        min_critical=2,
        focus_section="Invoice Details",
        ignore_section="Terms and Conditions",
        hints="""Additional Invoice-specific extraction guidelines:
- Invoice numbers are typically at the top of the document
- Look for "Invoice Date", "Bill Date", or similar date references
- Total amounts are usually prominently displayed
- Tax amounts may be listed separately as VAT, GST, or Sales Tax
- Due dates often appear under "Due Date" or "Payment Due" labels""",
    ),
    "Contract": DocumentProfile(
        critical_fields=("contract_number", "effective_date", "contract_value"),
        min_critical=2,
        hints="""Additional Contract-specific extraction guidelines:
- Contract numbers may be in headers or reference sections
- Effective dates are often mentioned as "Effective Date" or "Commencement Date"
- Parties are typically listed at the beginning of the contract
- Contract values may be mentioned as "Total Value" or "Contract Amount"
- Look for renewal clauses and governing law sections""",
    ),
    "general": DocumentProfile(),
}


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, loaded once at startup and never mutated"""
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    adapter_timeout: float = ADAPTER_TIMEOUT
    ocr_max_pages: int = OCR_MAX_PAGES
    ocr_language: str = OCR_LANGUAGE
    ocr_dpi: int = OCR_DPI
    max_files: int = SCAN_MAX_FILES
    max_depth: int = SCAN_MAX_DEPTH
    batch_delay: float = BATCH_DELAY
    backfill_missing: bool = True
    log_level: str = "INFO"
    profiles: Dict[str, DocumentProfile] = field(default_factory=lambda: dict(DOCUMENT_PROFILES))

    def profile_for(self, document_type: Optional[str]) -> DocumentProfile:
        return self.profiles.get(document_type or "general") or self.profiles.get("general", DocumentProfile())


def load_settings(env: Optional[Dict[str, str]] = None) -> Settings:
    """Build Settings from environment variables (os.environ by default)"""
    env = os.environ if env is None else env
    return Settings(
        openai_api_key=env.get("OPENAI_API_KEY"),
        anthropic_api_key=env.get("ANTHROPIC_API_KEY"),
        gemini_api_key=env.get("GOOGLE_GEMINI_API_KEY"),
        adapter_timeout=float(env.get("CASCADE_ADAPTER_TIMEOUT", ADAPTER_TIMEOUT)),
        ocr_max_pages=int(env.get("CASCADE_OCR_MAX_PAGES", OCR_MAX_PAGES)),
        ocr_language=env.get("CASCADE_OCR_LANGUAGE", OCR_LANGUAGE),
        max_files=int(env.get("CASCADE_MAX_FILES", SCAN_MAX_FILES)),
        max_depth=int(env.get("CASCADE_MAX_DEPTH", SCAN_MAX_DEPTH)),
        log_level=env.get("CASCADE_LOG_LEVEL", "INFO").upper(),
    )
