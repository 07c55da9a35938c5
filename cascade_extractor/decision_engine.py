"""Stopping policy: candidate validation, ranking, early stop and fallback decisions"""
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from .config import DocumentProfile
from .field_validator import FieldValidator
from .models import CandidateResult, FieldSpec

logger = logging.getLogger(__name__)


class DecisionEngine:
    """Decides which candidate wins and whether to keep trying backends"""

    def __init__(self, validator: Optional[FieldValidator] = None):
        self.validator = validator or FieldValidator()

    def required_critical(self, profile: DocumentProfile, fields: Sequence[FieldSpec]) -> Tuple[str, ...]:
        """Critical fields of the profile that were actually requested"""
        requested = {field.name.lower() for field in fields}
        return tuple(name for name in profile.critical_fields if name.lower() in requested)

    def evaluate(self,
                 raw_data: Dict[str, Any],
                 fields: Sequence[FieldSpec],
                 method: str,
                 critical_fields: Sequence[str]) -> CandidateResult:
        """
        Validate every requested field of a raw backend payload

        Args:
            raw_data: Parsed model output (field name -> raw value)
            fields: Requested fields; the candidate gets exactly one key per field
            method: Backend identifier
            critical_fields: Names counted towards critical_fields_found

        Returns:
            CandidateResult with normalized values (invalid values become None)
        """
        critical = {name.lower() for name in critical_fields}
        data: Dict[str, Optional[str]] = {}
        critical_found = 0

        for field in fields:
            raw_value = self._lookup(raw_data, field)
            outcome = self.validator.validate(field.name, raw_value)
            data[field.name] = outcome.normalized_value if outcome.valid else None
            if not outcome.valid and outcome.reason != "no value":
                logger.debug(f"{method}: rejected {field.name}={raw_value!r} ({outcome.reason})")
            if outcome.valid and field.name.lower() in critical:
                critical_found += 1

        return CandidateResult(data=data, method=method, critical_fields_found=critical_found)

    def _lookup(self, raw_data: Dict[str, Any], field: FieldSpec) -> Any:
        if field.name in raw_data:
            return raw_data[field.name]
        # Models sometimes echo the display name or change the key case
        wanted = {field.name.lower(), (field.display_name or field.name).lower()}
        for key, value in raw_data.items():
            if str(key).lower() in wanted:
                return value
        return None

    def is_better(self, candidate: CandidateResult, best: Optional[CandidateResult]) -> bool:
        """
        Strictly more critical fields wins; ties keep the earlier (higher priority)
        candidate unless that one extracted nothing at all
        """
        if best is None or candidate.critical_fields_found > best.critical_fields_found:
            return True
        return (candidate.critical_fields_found == best.critical_fields_found
                and best.extracted_field_count == 0
                and candidate.extracted_field_count > 0)

    def is_complete(self, candidate: CandidateResult, critical_fields: Sequence[str]) -> bool:
        """Every critical field is valid, so lower-priority backends need not be queried"""
        if not critical_fields:
            # Nothing critical requested: any extracted value will do
            return candidate.extracted_field_count > 0
        return candidate.critical_fields_found >= len(critical_fields)

    def needs_fallback(self,
                       best: Optional[CandidateResult],
                       profile: DocumentProfile,
                       critical_fields: Sequence[str]) -> bool:
        """Too few critical fields (or no candidate at all) to trust the model output"""
        if best is None or best.extracted_field_count == 0:
            return True
        threshold = min(profile.min_critical, len(critical_fields))
        return best.critical_fields_found < threshold
