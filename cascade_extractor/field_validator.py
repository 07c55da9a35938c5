"""Validation and normalization of single extracted field values"""
import re
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .models import Confidence, ValidationOutcome
from .preprocessor import Preprocessor

# Textual "not found" markers, equivalent to None. "NA" is deliberately absent: it is a region code.
EMPTY_SENTINELS = {"", "n/a", "null", "none", "not found", "not available", "unknown", "-"}

REGION_CODES = {"NA", "EMEA", "APAC", "LATAM"}
CURRENCY_CODES = {"USD", "EUR", "GBP", "CAD", "AUD", "JPY"}
CURRENCY_SYMBOLS = {"$": "USD", "€": "EUR", "£": "GBP", "¥": "JPY"}

EMAIL_PATTERN = re.compile(r'^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$')
CORPORATE_SUFFIX_PATTERN = re.compile(
    r'\b(ltd|inc|llc|corp|corporation|solutions|enterprises|labs|systems|co|limited|s\.a)\b',
    re.IGNORECASE,
)
ISO_DATE_PATTERN = re.compile(r'\b(\d{4})-(\d{2})-(\d{2})\b')
EMBEDDED_DATE_PATTERN = re.compile(
    r'\b\d{1,2}[/\-.]\d{1,2}[/\-.]\d{4}\b|\b\d{4}/\d{1,2}/\d{1,2}\b'
    r'|\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.? \d{1,2},? \d{4}\b'
    r'|\b\d{1,2} (?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.? \d{4}\b',
    re.IGNORECASE,
)
DATE_FORMATS = (
    "%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%d/%m/%Y", "%m-%d-%Y", "%d-%m-%Y", "%d.%m.%Y",
    "%B %d, %Y", "%b %d, %Y", "%B %d %Y", "%b %d %Y", "%d %B %Y", "%d %b %Y",
)

# Field name -> category for names that need an exact mapping
CATEGORY_BY_NAME = {
    "pod": "region",
    "region": "region",
    "region_code": "region",
    "floor_amount_match": "floor_amount",
    "floor_amount": "floor_amount",
    "floor_price": "floor_amount",
    "minimum_spend": "floor_amount",
    "company_name": "company",
    "company": "company",
    "period": "period",
    "contract_period": "period",
    "currency": "currency",
    "poc": "email",
    "point_of_contact": "email",
}


class FieldValidator:
    """Converts untrusted model/OCR output into typed, bounded values"""

    def __init__(self):
        self.preprocessor = Preprocessor()
        self.rules: Dict[str, Callable[[str], ValidationOutcome]] = {
            "region": self._validate_region,
            "floor_amount": self._validate_floor_amount,
            "company": self._validate_company,
            "period": self._validate_period,
            "currency": self._validate_currency,
            "email": self._validate_email,
            "date": self._validate_date,
            "percentage": self._validate_percentage,
            "amount": self._validate_amount,
            "text": self._validate_text,
        }

    def category_for(self, field_name: str) -> str:
        """Resolve the validation category of a field from its name"""
        key = self.preprocessor.normalize_field_name(field_name)
        if key in CATEGORY_BY_NAME:
            return CATEGORY_BY_NAME[key]

        tokens = set(key.split('_'))
        if 'email' in tokens or 'mail' in tokens:
            return "email"
        if 'date' in tokens:
            return "date"
        if tokens & {'discount', 'percent', 'percentage', 'rate'}:
            return "percentage"
        if tokens & {'amount', 'total', 'value', 'price', 'cost'}:
            return "amount"
        return "text"

    def validate(self, field_name: str, raw_value: Any) -> ValidationOutcome:
        """
        Validate one extracted value for a field

        Args:
            field_name: Field key (e.g. "floor_amount_match")
            raw_value: Value as produced by a model or pattern, any JSON type

        Returns:
            ValidationOutcome; invalid outcomes carry a reason
        """
        value = self._as_text(raw_value)
        if is_empty(value):
            return ValidationOutcome(valid=False, reason="no value")

        rule = self.rules[self.category_for(field_name)]
        return rule(value.strip())

    def _as_text(self, raw_value: Any) -> Optional[str]:
        if raw_value is None or isinstance(raw_value, bool):
            return None
        if isinstance(raw_value, (list, tuple)):
            return ", ".join(str(item) for item in raw_value if item is not None)
        if isinstance(raw_value, float) and raw_value.is_integer():
            return str(int(raw_value))
        return str(raw_value)

    def _validate_region(self, value: str) -> ValidationOutcome:
        upper_value = value.upper()
        if upper_value in REGION_CODES:
            return ValidationOutcome(valid=True, confidence=Confidence.HIGH, normalized_value=upper_value)
        return ValidationOutcome(valid=False, reason="invalid region code")

    def _validate_floor_amount(self, value: str) -> ValidationOutcome:
        # Drop a trailing cents part so "1,250.00" stays 1250
        whole = re.sub(r'[.,]\d{1,2}\s*$', '', value)
        digits = re.sub(r'[^0-9]', '', whole)
        if not digits or int(digits) < 50:
            return ValidationOutcome(valid=False, reason="floor amount too small or invalid")
        amount = int(digits)
        return ValidationOutcome(
            valid=True,
            confidence=Confidence.HIGH if amount >= 1000 else Confidence.MEDIUM,
            normalized_value=str(amount),
        )

    def _validate_company(self, value: str) -> ValidationOutcome:
        if len(value) < 3 or len(value) > 100:
            return ValidationOutcome(valid=False, reason="company name length invalid")
        has_suffix = CORPORATE_SUFFIX_PATTERN.search(value) is not None
        return ValidationOutcome(
            valid=True,
            confidence=Confidence.HIGH if has_suffix else Confidence.MEDIUM,
            normalized_value=value,
        )

    def _validate_period(self, value: str) -> ValidationOutcome:
        match = re.match(r'(\d+)', value)
        if not match or not 1 <= int(match.group(1)) <= 120:
            return ValidationOutcome(valid=False, reason="period out of range (1-120 months)")
        return ValidationOutcome(valid=True, confidence=Confidence.HIGH,
                                 normalized_value=str(int(match.group(1))))

    def _validate_currency(self, value: str) -> ValidationOutcome:
        if value.upper() in CURRENCY_CODES:
            return ValidationOutcome(valid=True, confidence=Confidence.HIGH, normalized_value=value.upper())
        if value in CURRENCY_SYMBOLS:
            return ValidationOutcome(valid=True, confidence=Confidence.HIGH,
                                     normalized_value=CURRENCY_SYMBOLS[value])
        return ValidationOutcome(valid=False, reason="invalid currency format")

    def _validate_email(self, value: str) -> ValidationOutcome:
        if EMAIL_PATTERN.match(value):
            return ValidationOutcome(valid=True, confidence=Confidence.HIGH, normalized_value=value)
        return ValidationOutcome(valid=False, reason="expected an email address")

    def _validate_date(self, value: str) -> ValidationOutcome:
        parsed = parse_date(value)
        if parsed:
            return ValidationOutcome(valid=True, confidence=Confidence.HIGH, normalized_value=parsed)

        # Date embedded in a longer phrase, e.g. "Completed 2024-01-15 10:32 UTC"
        embedded = ISO_DATE_PATTERN.search(value) or EMBEDDED_DATE_PATTERN.search(value)
        if embedded:
            parsed = parse_date(embedded.group(0))
            if parsed:
                return ValidationOutcome(valid=True, confidence=Confidence.LOW, normalized_value=parsed)
        return ValidationOutcome(valid=False, reason="unrecognized date")

    def _validate_percentage(self, value: str) -> ValidationOutcome:
        match = re.match(r'^(\d{1,3}(?:\.\d+)?)\s*%?$', value)
        if not match or float(match.group(1)) > 100:
            return ValidationOutcome(valid=False, reason="invalid percentage")
        return ValidationOutcome(valid=True, confidence=Confidence.MEDIUM,
                                 normalized_value=f"{match.group(1)}%")

    def _validate_amount(self, value: str) -> ValidationOutcome:
        cleaned = re.sub(r'[^\d.,]', '', value).replace(',', '')
        try:
            float(cleaned)
        except ValueError:
            return ValidationOutcome(valid=False, reason="invalid amount")
        return ValidationOutcome(valid=True, confidence=Confidence.HIGH, normalized_value=cleaned)

    def _validate_text(self, value: str) -> ValidationOutcome:
        if 0 < len(value) < 500:
            return ValidationOutcome(valid=True, confidence=Confidence.MEDIUM, normalized_value=value)
        return ValidationOutcome(valid=False, reason="text length out of range")


def is_empty(value: Optional[str]) -> bool:
    """True for None and for any textual 'not found' sentinel"""
    return value is None or value.strip().lower() in EMPTY_SENTINELS


def parse_date(value: str) -> Optional[str]:
    """Parse a date string in a known format and return it as YYYY-MM-DD"""
    text = re.sub(r'(\d)(st|nd|rd|th)\b', r'\1', value.strip(), flags=re.IGNORECASE)
    iso = re.fullmatch(r'(\d{4}-\d{2}-\d{2})[T ][\d:.]+(?:Z|[+-]\d{2}:?\d{2})?', text)
    if iso:
        text = iso.group(1)
    for date_format in DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format).strftime("%Y-%m-%d")
        except ValueError:
            continue
    return None
