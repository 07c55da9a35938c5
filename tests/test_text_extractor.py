"""
Tests for primary text conversion and text cleaning.
"""

import fitz
import pytest

from cascade_extractor.preprocessor import Preprocessor
from cascade_extractor.text_extractor import TextExtractor


@pytest.fixture
def pdf_path(tmp_path):
    path = tmp_path / "contract.pdf"
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Customer Details\nCompany Name: Acme Cloud Solutions\nRegion: EMEA")
    doc.new_page().insert_text((72, 72), "Signed Date: 2024-01-15")
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def text_extractor():
    return TextExtractor()


def test_process_pdf(text_extractor, pdf_path):
    document = text_extractor.process(pdf_path)

    assert document.success is True
    assert document.file_name == "contract.pdf"
    assert document.pages == 2
    assert "Company Name: Acme Cloud Solutions" in document.text
    assert "Signed Date: 2024-01-15" in document.text


def test_missing_file(text_extractor, tmp_path):
    document = text_extractor.process(tmp_path / "missing.pdf")
    assert document.success is False
    assert "File not found" in document.error


def test_unsupported_format(text_extractor, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    document = text_extractor.process(path)
    assert document.success is False
    assert "Unsupported file format" in document.error


def test_corrupt_pdf_does_not_raise(text_extractor, tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf")
    document = text_extractor.process(path)
    assert document.success is False
    assert document.text == ""


def test_process_many_keeps_order(text_extractor, pdf_path, tmp_path):
    documents = text_extractor.process_many([tmp_path / "missing.pdf", pdf_path])
    assert [d.success for d in documents] == [False, True]


class TestPreprocessor:

    def test_clean_text_keeps_lines(self):
        raw = "Customer Details\r\n\tCompany Name:   Acme  \n\n\n\nRegion: NA  "
        assert Preprocessor().clean_text(raw) == "Customer Details\nCompany Name: Acme\n\nRegion: NA"

    def test_normalize_field_name(self):
        preprocessor = Preprocessor()
        assert preprocessor.normalize_field_name("Floor Amount Match") == "floor_amount_match"
        assert preprocessor.normalize_field_name("SFDC-Opportunity Link Z-") == "sfdc_opportunity_link_z"

    def test_tokenize(self):
        assert Preprocessor().tokenize("Signed Date (formatted)") == ["signed", "date", "formatted"]
