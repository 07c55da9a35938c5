"""OCR text acquisition: render pages to images and recognize their text"""
import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from .config import OCR_DPI, OCR_LANGUAGE, OCR_MAX_PAGES
from .errors import EndOfDocument
from .models import AcquisitionResult

logger = logging.getLogger(__name__)


class PyMuPDFRenderer:
    """Renders a single PDF page to a PNG file"""

    def render(self, document_path: Union[str, Path], page_number: int, dpi: int, out_dir: Path) -> Path:
        with fitz.open(str(document_path)) as doc:
            if page_number > doc.page_count:
                raise EndOfDocument(
                    f"Requested page {page_number} is beyond the last page",
                    {"page_count": doc.page_count},
                )
            pix = doc[page_number - 1].get_pixmap(dpi=dpi)
            image_path = out_dir / f"page-{page_number}.png"
            pix.save(str(image_path))
            return image_path


class TesseractRecognizer:
    """Recognizes text in an image file with Tesseract"""

    def recognize(self, image_path: Path, language: str) -> str:
        with Image.open(image_path) as image:
            # PSM 3: fully automatic page segmentation
            return pytesseract.image_to_string(
                image,
                lang=language,
                config="--psm 3 -c preserve_interword_spaces=1",
            )


class OCRService:
    """Best-effort text for documents whose direct text extraction came back empty"""

    def __init__(self,
                 renderer=None,
                 recognizer=None,
                 dpi: int = OCR_DPI,
                 language: str = OCR_LANGUAGE,
                 max_pages: int = OCR_MAX_PAGES):
        self.renderer = renderer or PyMuPDFRenderer()
        self.recognizer = recognizer or TesseractRecognizer()
        self.dpi = dpi
        self.language = language
        self.max_pages = max_pages

    async def acquire_text(self,
                           document_path: Union[str, Path],
                           max_pages: Optional[int] = None) -> AcquisitionResult:
        """
        OCR a document page by page

        Args:
            document_path: Path to the document
            max_pages: Page limit (defaults to the service limit)

        Returns:
            AcquisitionResult with page-annotated text; success is False
            when no page produced any text
        """
        max_pages = max_pages or self.max_pages
        logger.info(f"Starting OCR extraction for: {document_path}")

        page_texts = []
        page_number = 1
        try:
            # Rendered images live only inside this directory
            with tempfile.TemporaryDirectory(prefix="cascade-ocr-") as tmp:
                out_dir = Path(tmp)
                while page_number <= max_pages:
                    try:
                        image_path = await asyncio.to_thread(
                            self.renderer.render, document_path, page_number, self.dpi, out_dir
                        )
                        page_text = (await asyncio.to_thread(
                            self.recognizer.recognize, image_path, self.language
                        ) or '').strip()
                    except EndOfDocument:
                        logger.info(f"Reached end of document at page {page_number}")
                        break
                    except Exception as e:
                        logger.warning(f"OCR failed on page {page_number} of {document_path}: {e}")
                        page_number += 1
                        continue

                    if page_text:
                        page_texts.append(f"--- Page {page_number} ---\n{page_text}")
                        logger.debug(f"Extracted {len(page_text)} characters from page {page_number}")
                    else:
                        logger.debug(f"No text found on page {page_number}")
                    page_number += 1
        except Exception as e:
            logger.error(f"OCR extraction failed for {document_path}: {e}")
            return AcquisitionResult(success=False, error=f"OCR failed: {e}")

        if not page_texts:
            return AcquisitionResult(
                success=False,
                error="No text could be extracted from the document using OCR",
            )

        text = '\n\n'.join(page_texts)
        logger.info(f"OCR completed: {len(text)} characters from {page_number - 1} page(s)")
        return AcquisitionResult(success=True, text=text, pages_processed=page_number - 1)
