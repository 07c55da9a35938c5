"""Prompt construction and response parsing shared by all model adapters"""
import json
from typing import Any, Dict, Iterable, Optional

from .config import DocumentProfile
from .errors import ParseFailure
from .models import FieldSpec

SYSTEM_PROMPT = "You are a precise document extraction assistant. Return only valid JSON."


def build_extraction_prompt(fields: Iterable[FieldSpec],
                            document_text: str,
                            file_name: str,
                            document_type: str = "general",
                            profile: Optional[DocumentProfile] = None) -> str:
    """
    Build the extraction instructions sent to every provider

    Args:
        fields: Fields to extract
        document_text: Document text (or a focused section of it)
        file_name: Original document name
        document_type: Document type tag, e.g. "CoF"
        profile: Extraction profile carrying the focus directive and hints

    Returns:
        Prompt text
    """
    fields_description = "\n".join(
        f"- {field.name}: {field.description or 'Extract relevant value'}"
        for field in fields
    )

    rules = [
        "Return ONLY a valid JSON object with the exact field names as keys",
        "Use null for fields that cannot be found (not \"N/A\" and not an empty string)",
        "Format every date as YYYY-MM-DD",
        "Extract the exact value from the document; do not invent values",
    ]
    if profile and profile.focus_section:
        rules.append(f'Focus on the "{profile.focus_section}" section, which contains most field information')
    if profile and profile.ignore_section:
        rules.append(f'Completely ignore the "{profile.ignore_section}" section')
    rules_text = "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, 1))

    hints = f"\n{profile.hints}\n" if profile and profile.hints else ""

    return f"""You are a specialist in extracting data from {document_type} documents.

Document name: {file_name}
Document type: {document_type}

Extraction rules:
{rules_text}
{hints}
Fields to extract:
{fields_description}

Document text:
{document_text}

Return only valid JSON:"""


def find_json_object(text: str) -> Optional[str]:
    """Return the first balanced {...} span in text, ignoring braces inside strings"""
    start = text.find('{')
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this brace; try the next one
        start = text.find('{', start + 1)
    return None


def parse_json_response(text: str) -> Dict[str, Any]:
    """
    Parse a model response into a field -> value mapping

    Raises:
        ParseFailure: no JSON object in the response, or it is not valid JSON
    """
    span = find_json_object(text or '')
    if span is None:
        raise ParseFailure("No JSON object found in model response", {"response": (text or '')[:200]})
    try:
        data = json.loads(span)
    except json.JSONDecodeError as e:
        raise ParseFailure(f"Invalid JSON in model response: {e}", {"response": span[:200]})
    return data
