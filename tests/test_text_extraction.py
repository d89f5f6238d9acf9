"""
tests/test_text_extraction.py

Tests for DocumentTextExtractor.

PDFs are generated in memory with PyMuPDF; Tesseract is replaced with a
stub so the tests do not need the OCR binary.
"""

from __future__ import annotations

import fitz
import pytest

from app.extraction import DocumentTextExtractor

LONG_TEXT = "\n".join(
    [
        "MEDICAL LIEN NOTICE",
        "Debtor: John Q Public",
        "123 Main Street",
        "Phoenix, AZ 85001",
        "Amount claimed due for care of patient as of date of recording: $25,000.00",
    ]
)


def _pdf_bytes(text: str | None) -> bytes:
    document = fitz.open()
    page = document.new_page()
    if text:
        page.insert_text((72, 72), text, fontsize=10)
    data = document.tobytes()
    document.close()
    return data


@pytest.fixture()
def extractor() -> DocumentTextExtractor:
    return DocumentTextExtractor(min_text_length=100, ocr_timeout_seconds=5)


class TestPdfText:
    def test_embedded_text_is_read_directly(
        self, extractor: DocumentTextExtractor, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _fail(*args, **kwargs):
            raise AssertionError("OCR must not run for text PDFs")

        monkeypatch.setattr("app.extraction.text.pytesseract.image_to_string", _fail)

        text = extractor.extract_text(_pdf_bytes(LONG_TEXT), "application/pdf")

        assert "Debtor: John Q Public" in text
        assert "$25,000.00" in text

    def test_scanned_pdf_falls_back_to_ocr(
        self, extractor: DocumentTextExtractor, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[float] = []

        def _fake_ocr(image, timeout=None):
            calls.append(timeout)
            return "OCR TEXT Amount Claimed: $30,000.00"

        monkeypatch.setattr("app.extraction.text.pytesseract.image_to_string", _fake_ocr)

        text = extractor.extract_text(_pdf_bytes(None), "")

        assert text == "OCR TEXT Amount Claimed: $30,000.00"
        assert calls == [5]

    def test_ocr_failure_yields_empty_text(
        self, extractor: DocumentTextExtractor, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _broken(*args, **kwargs):
            raise RuntimeError("tesseract is not installed")

        monkeypatch.setattr("app.extraction.text.pytesseract.image_to_string", _broken)

        assert extractor.extract_text(_pdf_bytes(None), "application/pdf") == ""

    def test_short_embedded_text_kept_when_ocr_is_empty(
        self, extractor: DocumentTextExtractor, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("app.extraction.text.pytesseract.image_to_string", lambda *a, **k: "  \n")

        text = extractor.extract_text(_pdf_bytes("Amount: $25,000.00"), "application/pdf")

        assert "Amount: $25,000.00" in text

    def test_corrupt_pdf_yields_empty_text(
        self, extractor: DocumentTextExtractor, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            "app.extraction.text.pytesseract.image_to_string", lambda *a, **k: "unused"
        )
        assert extractor.extract_text(b"%PDF-1.7 not really a pdf", "application/pdf") == ""


class TestOtherContent:
    def test_html_drops_scripts(self, extractor: DocumentTextExtractor) -> None:
        html = b"<html><head><script>var x = 1;</script></head><body><p>Debtor: Jane</p></body></html>"
        text = extractor.extract_text(html, "text/html; charset=utf-8")
        assert "Debtor: Jane" in text
        assert "var x" not in text

    def test_plain_text_is_decoded(self, extractor: DocumentTextExtractor) -> None:
        assert extractor.extract_text("Amount: $5,000".encode(), "text/plain") == "Amount: $5,000"
