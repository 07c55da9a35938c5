"""Regex/heuristic field extraction directly from document text"""
import logging
import re
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from .config import MIN_SECTION_LENGTH
from .field_validator import FieldValidator
from .models import FieldSpec
from .preprocessor import Preprocessor

logger = logging.getLogger(__name__)

CORPORATE_SUFFIXES = r'(?:Ltd|Inc|LLC|Corp|Corporation|Solutions|Enterprises|Labs|Systems|Co|Limited|S\.A)'
MONEY = r'[£$€¥]?\s*\d{1,3}(?:[,\']\d{3})+(?:\.\d{2})?|[£$€¥]?\s*\d{1,9}(?:\.\d{2})?'
SECTION_END = r'(?=fees\s*&?\s*payment\s*terms|payment\s*terms|billing|financial\s*terms|$)'

CERTIFICATE_REMARKS = [
    'DocuSign Certificate Complete',
    'Certificate of Fulfillment - Approved',
    'Final Certificate - Requirements Met',
    'DocuSign Completion Certificate',
    'Certificate of Delivery',
]

STATUS_COMMENTS = [
    'All requirements met',
    'Completed on schedule',
    'Milestone achieved',
    'Phase complete',
    'Successfully completed',
    'Requirements fulfilled',
]


def _phrases(phrases: Iterable[str]) -> str:
    return '(' + '|'.join(re.escape(p) for p in phrases) + ')'


class PatternExtractor:
    """Finds field values with regex patterns selected from the field name"""

    def __init__(self, validator: Optional[FieldValidator] = None):
        self.validator = validator or FieldValidator()
        self.preprocessor = Preprocessor()

        # Ordered: the first category with a keyword among the field name's words
        # (then, failing that, the description's words) wins.
        table: List[Tuple[str, Tuple[str, ...], List[str]]] = [
            ('region', ('pod', 'region'), [
                r'(?i:region)\s*:?\s*(NA|EMEA|APAC|LATAM)\b',
                r'\b(NA|EMEA|APAC|LATAM)\b[^\n]{0,20}?(?<![A-Za-z])[xX✓☒](?![A-Za-z])',
                r'(?<![A-Za-z])[xX✓☒](?![A-Za-z])[^\n]{0,20}?\b(NA|EMEA|APAC|LATAM)\b',
            ]),
            ('floor_amount', ('floor', 'minimum_spend'), [
                rf'(?i:floor\s*price)\s*:?\s*({MONEY})',
                rf'(?i:floor\s*amount)\s*:?\s*({MONEY})',
                rf'(?i:minimum\s*spend)\s*:?\s*({MONEY})',
            ]),
            ('company', ('company',), [
                rf'(?i:company)(?:\s*(?i:name))?\s*:?\s*([A-Za-z0-9 .,&\-]{{3,80}}?\b{CORPORATE_SUFFIXES}\b\.?)',
                rf'\b([A-Z][A-Za-z0-9.&\-]*(?: [A-Z0-9][A-Za-z0-9.&\-]*){{0,5}} {CORPORATE_SUFFIXES}\b\.?)',
                r'(?i:company\s*name)\s*:\s*([^\n]{3,100})',
            ]),
            ('period', ('period', 'term_months'), [
                r'(?i:contract\s*period)\s*:?[^\n]*?(\d{1,3})\s*(?i:months?)',
                r'(?i:period)\s*:?\s*(\d{1,3})\s*(?i:months?)',
                r'\b(\d{1,3})\s*(?i:months?)\b',
            ]),
            ('currency', ('currency',), [
                r'(?i:currency)\s*:?\s*([A-Z]{3}\b|[$€£¥])',
                r'\b(USD|EUR|GBP|CAD|AUD|JPY)\b',
                r'([$€£¥])\s?\d',
            ]),
            ('email', ('email', 'e-mail', 'poc', 'point_of_contact'), [
                r'\b([A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,})\b',
            ]),
            ('date', ('date',), [
                r'\b(\d{4}-\d{2}-\d{2})\b',
                r'\b(\d{1,2}[/-]\d{1,2}[/-]\d{4})\b',
                r'\b((?i:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.? \d{1,2},? \d{4})\b',
                r'\b(\d{1,2} (?i:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]* \d{4})\b',
            ]),
            ('percentage', ('discount', 'percent', 'percentage'), [
                r'(\d{1,3}(?:\.\d+)?\s*%)',
            ]),
            ('amount', ('amount', 'total', 'price', 'value', 'cost'), [
                rf'(?i:grand\s*total|total\s*amount|amount\s*due|balance\s*due|total)[^\n\d$€£¥]{{0,30}}({MONEY})',
                r'([£$€¥]\s*\d[\d,]*(?:\.\d{2})?)',
            ]),
            ('phone', ('phone', 'mobile', 'fax'), [
                r'((?:\+\d{1,3}[\s.-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4})\b',
            ]),
            ('invoice_number', ('invoice',), [
                r'(?i:invoice)\s*(?i:number|no\.?|#)\s*:?\s*([A-Z0-9][A-Z0-9\-/]{2,30})',
                r'\b(INV[-\s]?\d{3,})\b',
            ]),
            ('url', ('link', 'url', 'sfdc'), [
                r'(https?://[^\s]*salesforce[^\s]*Z-\d+)',
                r'(https?://\S+)',
            ]),
            ('remarks', ('remark', 'remarks', 'certificate'), [
                '(?i:' + _phrases(CERTIFICATE_REMARKS) + ')',
                r'([^.\n]*(?i:certificate)[^.\n]*)',
            ]),
            ('comment', ('comment', 'comments', 'status'), [
                '(?i:' + _phrases(STATUS_COMMENTS) + ')',
                r'([^.\n]*(?i:completed|met|achieved)[^.\n]*)',
            ]),
        ]
        self.pattern_table: List[Tuple[str, Tuple[str, ...], List[Pattern]]] = [
            (category, keywords, [re.compile(p) for p in patterns])
            for category, keywords, patterns in table
        ]

        # Heading pairs used to isolate the section most fields live in
        self.section_patterns: List[Pattern] = [
            re.compile(r'customer\s*details.*?' + SECTION_END, re.IGNORECASE | re.DOTALL),
            re.compile(r'customer\s*information.*?' + SECTION_END, re.IGNORECASE | re.DOTALL),
            re.compile(r'client\s*details.*?' + SECTION_END, re.IGNORECASE | re.DOTALL),
            re.compile(r'salesforce\s*opportunity\s*details.*?'
                       r'(?=fees\s*&?\s*payment\s*terms|payment\s*terms|billing|financial\s*terms|project\s*details|$)',
                       re.IGNORECASE | re.DOTALL),
            re.compile(r'financial\s*terms.*?'
                       r'(?=fees\s*&?\s*payment\s*terms|payment\s*terms|billing|project\s*details|docusign|$)',
                       re.IGNORECASE | re.DOTALL),
        ]

    def focus_section(self, text: str) -> Optional[str]:
        """Return the details subsection of the text, or None when no usable section exists"""
        if not text:
            return None
        for pattern in self.section_patterns:
            match = pattern.search(text)
            if match and len(match.group(0)) > MIN_SECTION_LENGTH:
                logger.debug(f"Found details section ({len(match.group(0))} chars)")
                return match.group(0)
        logger.debug("No details section found, using full text")
        return None

    def extract(self, field_spec: FieldSpec, search_text: str) -> Optional[str]:
        """
        Extract one field value from text

        Args:
            field_spec: Field to look for
            search_text: Full text or a focused section

        Returns:
            Normalized value, or None when nothing matched
        """
        if not search_text:
            return None

        category = self._select_category(field_spec)
        if category is None:
            return self._label_value(field_spec, search_text)

        _, _, patterns = category
        for pattern in patterns:
            for match in pattern.finditer(search_text):
                value = self._matched_value(match)
                if not value:
                    continue
                outcome = self.validator.validate(field_spec.name, value)
                if outcome.valid:
                    return outcome.normalized_value
        return None

    def extract_all(self,
                    fields: Iterable[FieldSpec],
                    text: str,
                    section_focused: bool = True) -> Dict[str, Optional[str]]:
        """Extract every field; the result has exactly one key per field"""
        search_text = text or ''
        if section_focused:
            search_text = self.focus_section(search_text) or search_text
        return {field.name: self.extract(field, search_text) for field in fields}

    def _select_category(self, field_spec: FieldSpec):
        normalize = self.preprocessor.normalize_field_name
        for text in (field_spec.name, field_spec.description):
            words = normalize(text)
            if not words:
                continue
            # Whole words only: "update_notes" must not match "date"
            haystack = f"_{words}_"
            for entry in self.pattern_table:
                if any(f"_{normalize(keyword)}_" in haystack for keyword in entry[1]):
                    return entry
        return None

    def _matched_value(self, match: re.Match) -> str:
        value = match.group(1) if match.lastindex else match.group(0)
        return (value or '').strip()

    def _label_value(self, field_spec: FieldSpec, text: str) -> Optional[str]:
        """Generic 'Label: value' proximity match built from the field name"""
        labels = [field_spec.name]
        if field_spec.display_name and field_spec.display_name != field_spec.name:
            labels.append(field_spec.display_name)

        for label in labels:
            tokens = self.preprocessor.tokenize(label)
            if not tokens or len(''.join(tokens)) < 2:
                continue
            label_pattern = r'[\s_\-]*'.join(re.escape(token) for token in tokens)
            pattern = re.compile(
                rf'\b{label_pattern}\b\s*[:#\-]?\s*([A-Za-z0-9][A-Za-z0-9 .,#\-/@&]{{0,99}})',
                re.IGNORECASE,
            )
            for match in pattern.finditer(text):
                value = match.group(1).strip(' .,:-#')
                if not value:
                    continue
                outcome = self.validator.validate(field_spec.name, value)
                if outcome.valid:
                    return outcome.normalized_value
        return None
