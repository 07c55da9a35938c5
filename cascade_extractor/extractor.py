"""Main extraction orchestrator"""
import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .config import DocumentProfile, Settings, load_settings
from .decision_engine import DecisionEngine
from .errors import (
    AcquisitionFailed,
    FatalOrchestratorError,
    NoDocumentPathError,
    ProviderCallFailed,
)
from .llm_client import ModelAdapter, build_adapters
from .models import CandidateResult, ExtractionRequest, ExtractionResult, FieldSpec
from .ocr import OCRService
from .pattern_extractor import PatternExtractor
from .prompts import build_extraction_prompt, parse_json_response

logger = logging.getLogger(__name__)

PATTERN_METHOD = "Pattern Fallback"
DEFAULT_METHOD = "Field Extraction"
ERROR_METHOD = "Field Extraction (Error)"


class FieldExtractor:
    """Tries model backends in priority order, then falls back to OCR and patterns"""

    def __init__(self,
                 adapters: Optional[Sequence[ModelAdapter]] = None,
                 settings: Optional[Settings] = None,
                 ocr_service: Optional[OCRService] = None,
                 pattern_extractor: Optional[PatternExtractor] = None,
                 decision_engine: Optional[DecisionEngine] = None):
        self.settings = settings or Settings()
        self.adapters: List[ModelAdapter] = sorted(adapters or [], key=lambda a: a.priority)
        self.decision_engine = decision_engine or DecisionEngine()
        self.pattern_extractor = pattern_extractor or PatternExtractor(self.decision_engine.validator)
        self.ocr_service = ocr_service or OCRService(
            dpi=self.settings.ocr_dpi,
            language=self.settings.ocr_language,
            max_pages=self.settings.ocr_max_pages,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "FieldExtractor":
        """Build an extractor with every adapter whose credential is configured"""
        settings = settings or load_settings()
        return cls(adapters=build_adapters(settings), settings=settings)

    def available_models(self) -> List[Dict[str, str]]:
        return [adapter.describe() for adapter in self.adapters]

    async def extract_fields(self, request: ExtractionRequest) -> ExtractionResult:
        """
        Extract every requested field from one document

        Never raises: acquisition failures and unexpected errors come back as
        a failed ExtractionResult with an all-null field map and an error.
        """
        logger.info(f"Starting extraction for {request.file_name} (type: {request.document_type})")
        try:
            return await self._run(request)
        except AcquisitionFailed as e:
            logger.warning(f"No text available for {request.file_name}: {e}")
            return ExtractionResult.empty(request.field_names, DEFAULT_METHOD, str(e), request.file_name)
        except Exception as e:
            error = FatalOrchestratorError(f"Extraction failed: {e}", {"file_name": request.file_name})
            logger.exception(str(error))
            return ExtractionResult.empty(request.field_names, ERROR_METHOD, str(error), request.file_name)

    async def batch_extract(self,
                            requests: Sequence[ExtractionRequest],
                            delay: Optional[float] = None,
                            max_workers: int = 1) -> List[ExtractionResult]:
        """
        Extract a batch of documents, isolating failures per document

        Args:
            requests: Documents to process
            delay: Pause after each document (defaults to settings.batch_delay)
            max_workers: Documents processed concurrently; 1 means strictly sequential

        Returns:
            Results in request order
        """
        requests = list(requests)
        delay = self.settings.batch_delay if delay is None else delay

        if max_workers <= 1:
            results = []
            for index, request in enumerate(requests):
                results.append(await self._extract_isolated(request))
                if delay and index < len(requests) - 1:
                    await asyncio.sleep(delay)
            return results

        semaphore = asyncio.Semaphore(max_workers)

        async def worker(request: ExtractionRequest) -> ExtractionResult:
            async with semaphore:
                result = await self._extract_isolated(request)
                if delay:
                    await asyncio.sleep(delay)
                return result

        return list(await asyncio.gather(*(worker(request) for request in requests)))

    async def _extract_isolated(self, request: ExtractionRequest) -> ExtractionResult:
        try:
            return await self.extract_fields(request)
        except Exception as e:
            logger.error(f"Error processing {request.file_name}: {e}")
            return ExtractionResult.empty(request.field_names, ERROR_METHOD, str(e), request.file_name)

    async def _run(self, request: ExtractionRequest) -> ExtractionResult:
        profile = self.settings.profile_for(request.document_type)
        fields = request.fields
        critical = self.decision_engine.required_critical(profile, fields)

        text = request.document_text or ''
        text_source = "text"
        if not text.strip():
            text = await self._acquire_text(request)
            text_source = "ocr"

        section = self.pattern_extractor.focus_section(text)
        best = await self._try_models(request, text, profile, critical)

        if self.decision_engine.needs_fallback(best, profile, critical):
            logger.info("Model results insufficient, trying pattern fallback")
            fallback, fallback_source = await self._pattern_fallback(request, text, text_source)
            if fallback is not None:
                best, text_source = fallback, fallback_source

        if best is None:
            return ExtractionResult.empty(request.field_names, DEFAULT_METHOD,
                                          "No extraction methods succeeded", request.file_name)

        backfilled: Tuple[str, ...] = ()
        if best.method != PATTERN_METHOD and self.settings.backfill_missing:
            backfilled = self._backfill(best, fields, section or text)

        extracted = best.extracted_field_count
        logger.info(f"{request.file_name}: {extracted}/{len(fields)} fields via {best.method}")
        return ExtractionResult(
            success=extracted > 0,
            data=dict(best.data),
            method=best.method,
            extracted_field_count=extracted,
            total_fields=len(fields),
            critical_fields_found=best.critical_fields_found,
            file_name=request.file_name,
            text_source=text_source,
            section_found=section is not None,
            backfilled_fields=backfilled,
        )

    async def _acquire_text(self, request: ExtractionRequest) -> str:
        if not request.document_path:
            raise NoDocumentPathError("No text available and no document path for OCR fallback",
                                      {"file_name": request.file_name})
        logger.info(f"No text for {request.file_name}, falling back to OCR")
        acquisition = await self.ocr_service.acquire_text(request.document_path, self.settings.ocr_max_pages)
        if not acquisition.success:
            raise AcquisitionFailed(acquisition.error or "OCR produced no text",
                                    {"document_path": request.document_path})
        return acquisition.text

    async def _try_models(self,
                          request: ExtractionRequest,
                          text: str,
                          profile: DocumentProfile,
                          critical: Sequence[str]) -> Optional[CandidateResult]:
        if not self.adapters:
            return None

        prompt = build_extraction_prompt(request.fields, text, request.file_name,
                                         request.document_type, profile)
        best: Optional[CandidateResult] = None

        for adapter in self.adapters:
            logger.info(f"Trying {adapter.name} (priority {adapter.priority})")
            try:
                response = await asyncio.wait_for(adapter.call(prompt), timeout=self.settings.adapter_timeout)
                raw_data = parse_json_response(response)
            except asyncio.TimeoutError:
                logger.warning(f"{adapter.name} timed out after {self.settings.adapter_timeout}s")
                continue
            except ProviderCallFailed as e:
                logger.warning(f"{adapter.name} failed: {e}")
                continue
            except Exception as e:
                logger.warning(f"{adapter.name} raised an unexpected error: {e}")
                continue

            candidate = self.decision_engine.evaluate(raw_data, request.fields, adapter.name, critical)
            logger.info(
                f"{adapter.name}: {candidate.extracted_field_count}/{len(request.fields)} fields, "
                f"{candidate.critical_fields_found}/{len(critical)} critical"
            )
            if self.decision_engine.is_better(candidate, best):
                best = candidate
            if self.decision_engine.is_complete(candidate, critical):
                logger.info(f"Found all critical fields with {adapter.name}")
                break

        return best

    async def _pattern_fallback(self,
                                request: ExtractionRequest,
                                text: str,
                                text_source: str) -> Tuple[Optional[CandidateResult], str]:
        candidate = CandidateResult(
            data=self.pattern_extractor.extract_all(request.fields, text),
            method=PATTERN_METHOD,
        )
        if candidate.extracted_field_count > 0:
            return candidate, text_source

        # Patterns found nothing in the converted text; OCR the document as a last resort
        if text_source != "ocr" and request.document_path:
            acquisition = await self.ocr_service.acquire_text(request.document_path, self.settings.ocr_max_pages)
            if acquisition.success:
                candidate = CandidateResult(
                    data=self.pattern_extractor.extract_all(request.fields, acquisition.text),
                    method=PATTERN_METHOD,
                )
                if candidate.extracted_field_count > 0:
                    return candidate, "ocr"
        return None, text_source

    def _backfill(self, candidate: CandidateResult, fields: Sequence[FieldSpec], search_text: str) -> Tuple[str, ...]:
        """Fill fields a model left empty from pattern matches; method and critical count stay as they are"""
        filled = []
        for field in fields:
            if candidate.data.get(field.name) is not None:
                continue
            value = self.pattern_extractor.extract(field, search_text)
            if value is not None:
                candidate.data[field.name] = value
                filled.append(field.name)
        if filled:
            logger.debug(f"Backfilled from patterns: {', '.join(filled)}")
        return tuple(filled)
