"""Data model shared by the extraction pipeline"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class FieldSpec:
    """A field to extract; description is a free-text hint for model prompts"""
    name: str
    display_name: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldSpec":
        return cls(
            name=data["name"],
            display_name=data.get("displayName") or data.get("display_name") or data["name"],
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class ExtractionRequest:
    """One document to extract; created once and never mutated"""
    document_text: str
    fields: Tuple[FieldSpec, ...]
    file_name: str
    document_type: str = "general"
    document_path: Optional[str] = None

    def __post_init__(self):
        # Accept any iterable of FieldSpec but store an immutable tuple
        object.__setattr__(self, "fields", tuple(self.fields))

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)


@dataclass
class ValidationOutcome:
    valid: bool
    confidence: Optional[Confidence] = None
    normalized_value: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class CandidateResult:
    """Validated output of a single backend attempt"""
    data: Dict[str, Optional[str]]
    method: str
    critical_fields_found: int = 0

    @property
    def extracted_field_count(self) -> int:
        return sum(1 for v in self.data.values() if v is not None)


@dataclass(frozen=True)
class ExtractionResult:
    """Final result returned to the caller"""
    success: bool
    data: Dict[str, Optional[str]]
    method: str
    extracted_field_count: int
    total_fields: int
    critical_fields_found: int = 0
    error: Optional[str] = None
    file_name: str = ""
    text_source: str = "text"
    section_found: bool = False
    backfilled_fields: Tuple[str, ...] = ()

    @classmethod
    def empty(cls, field_names: Iterable[str], method: str, error: str,
              file_name: str = "") -> "ExtractionResult":
        names = list(field_names)
        return cls(
            success=False,
            data={name: None for name in names},
            method=method,
            extracted_field_count=0,
            total_fields=len(names),
            error=error,
            file_name=file_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "success": self.success,
            "data": dict(self.data),
            "method": self.method,
            "extractedFields": self.extracted_field_count,
            "totalFields": self.total_fields,
            "criticalFieldsFound": self.critical_fields_found,
            "textSource": self.text_source,
            "sectionFound": self.section_found,
            "backfilledFields": list(self.backfilled_fields),
            "error": self.error,
        }


@dataclass(frozen=True)
class FileDescriptor:
    path: str
    name: str
    size: int
    modified: datetime
    relative_path: str


@dataclass
class AcquisitionResult:
    success: bool
    text: str = ""
    pages_processed: int = 0
    error: Optional[str] = None
    method: str = "OCR"


@dataclass
class ProcessedDocument:
    """Output of primary (non-OCR) text conversion"""
    file_name: str
    file_path: str
    text: str = ""
    pages: int = 0
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
