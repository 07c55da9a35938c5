"""Text preprocessing: cleaning, normalization, field-name keys"""
import re
from typing import List


class Preprocessor:
    """Cleans document text and normalizes field names for lookups"""

    def __init__(self):
        self.cleaning_patterns = [
            (r'\r\n?', '\n'),        # Normalize line endings
            (r'[ \t\f\v]+', ' '),    # Runs of inline whitespace to a single space
            (r' *\n *', '\n'),       # Trim around line breaks
            (r'\n{3,}', '\n\n'),     # At most one blank line
        ]

    def clean_text(self, text: str) -> str:
        """Clean extracted text while keeping line structure for section matching"""
        if not text:
            return ''
        cleaned = text
        for pattern, replacement in self.cleaning_patterns:
            cleaned = re.sub(pattern, replacement, cleaned)
        return cleaned.strip()

    def normalize_field_name(self, name: str) -> str:
        """'Floor Amount Match' / 'floor-amount-match' -> 'floor_amount_match'"""
        return re.sub(r'[^a-z0-9]+', '_', (name or '').lower()).strip('_')

    def tokenize(self, text: str) -> List[str]:
        """Split a field name or phrase into lowercase word tokens"""
        return [token for token in re.split(r'[^a-z0-9]+', (text or '').lower()) if token]
