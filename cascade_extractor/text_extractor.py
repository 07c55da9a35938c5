"""Plain text conversion of PDF documents using PyMuPDF and pdfplumber"""
import logging
from pathlib import Path
from typing import Iterable, List, Union

import fitz  # PyMuPDF
import pdfplumber

from .models import ProcessedDocument
from .preprocessor import Preprocessor

logger = logging.getLogger(__name__)


class TextExtractor:
    """Converts a document to cleaned plain text (the primary, non-OCR path)"""

    def __init__(self):
        self.use_pymupdf = True  # Prefer PyMuPDF for better performance
        self.supported_formats = ['.pdf']
        self.preprocessor = Preprocessor()

    def is_supported(self, file_path: Union[str, Path]) -> bool:
        return Path(file_path).suffix.lower() in self.supported_formats

    def extract_text(self, file_path: Union[str, Path]) -> str:
        """
        Convert a PDF file to plain text

        Args:
            file_path: Path to the PDF file

        Returns:
            Raw text of all pages, pages separated by newlines
        """
        try:
            if self.use_pymupdf:
                return self._extract_pymupdf(file_path)
            return self._extract_pdfplumber(file_path)
        except Exception as e:
            # Fallback to pdfplumber if PyMuPDF fails
            if self.use_pymupdf:
                logger.warning(f"PyMuPDF failed on {Path(file_path).name}, trying pdfplumber: {e}")
                return self._extract_pdfplumber(file_path)
            raise

    def process(self, file_path: Union[str, Path]) -> ProcessedDocument:
        """Convert a document and report failures in the result instead of raising"""
        path = Path(file_path)
        try:
            if not path.exists():
                raise FileNotFoundError(f"File not found: {path}")
            if not self.is_supported(path):
                raise ValueError(f"Unsupported file format: {path.suffix.lower()}")

            text = self.preprocessor.clean_text(self.extract_text(path))
            return ProcessedDocument(
                file_name=path.name,
                file_path=str(path),
                text=text,
                pages=self._page_count(path),
            )
        except Exception as e:
            logger.error(f"Error processing {path}: {e}")
            return ProcessedDocument(
                file_name=path.name,
                file_path=str(path),
                success=False,
                error=str(e),
            )

    def process_many(self, file_paths: Iterable[Union[str, Path]]) -> List[ProcessedDocument]:
        return [self.process(file_path) for file_path in file_paths]

    def _extract_pymupdf(self, file_path: Union[str, Path]) -> str:
        """Extract using PyMuPDF (fitz)"""
        with fitz.open(str(file_path)) as doc:
            return '\n'.join(page.get_text("text") for page in doc)

    def _extract_pdfplumber(self, file_path: Union[str, Path]) -> str:
        """Extract using pdfplumber (fallback)"""
        with pdfplumber.open(str(file_path)) as pdf:
            return '\n'.join(page.extract_text() or '' for page in pdf.pages)

    def _page_count(self, file_path: Path) -> int:
        try:
            with fitz.open(str(file_path)) as doc:
                return doc.page_count
        except Exception:
            return 0
