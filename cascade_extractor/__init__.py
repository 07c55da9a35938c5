"""Cascading multi-source field extraction for PDF documents"""
from .extractor import FieldExtractor
from .folder_scanner import FolderScanner, scan_folder
from .models import ExtractionRequest, ExtractionResult, FieldSpec

__all__ = [
    "FieldExtractor",
    "FolderScanner",
    "scan_folder",
    "ExtractionRequest",
    "ExtractionResult",
    "FieldSpec",
]
