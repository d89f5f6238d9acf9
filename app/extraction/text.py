"""
Text extraction for fetched documents.

PDFs are read directly first; scanned PDFs whose embedded text is too short
are rasterized and passed through Tesseract OCR. OCR failures yield an empty
string so a bad scan never aborts a run.
"""

from __future__ import annotations

import io
import logging

import fitz
import pytesseract
from bs4 import BeautifulSoup
from PIL import Image

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"


class DocumentTextExtractor:
    def __init__(
        self,
        *,
        min_text_length: int = 100,
        ocr_timeout_seconds: float = 60.0,
        ocr_zoom: float = 2.0,
        max_ocr_pages: int = 3,
    ) -> None:
        self._min_text_length = min_text_length
        self._ocr_timeout_seconds = ocr_timeout_seconds
        self._ocr_zoom = ocr_zoom
        self._max_ocr_pages = max(1, max_ocr_pages)

    def extract_text(self, content: bytes, content_type: str = "") -> str:
        normalized_type = content_type.lower()
        if content.startswith(PDF_MAGIC) or "pdf" in normalized_type:
            return self.pdf_text(content)
        if "html" in normalized_type or content.lstrip()[:1] == b"<":
            return self.html_text(content)
        return content.decode("utf-8", errors="ignore")

    def pdf_text(self, content: bytes) -> str:
        direct = self.direct_pdf_text(content)
        if len(direct.strip()) > self._min_text_length:
            return direct

        logger.info(
            "Embedded PDF text too short (%d chars), falling back to OCR",
            len(direct.strip()),
        )
        ocr_text = self.ocr_pdf_text(content)
        if ocr_text.strip():
            return ocr_text
        return direct

    @staticmethod
    def direct_pdf_text(content: bytes) -> str:
        try:
            with fitz.open(stream=content, filetype="pdf") as document:
                return "\n".join(page.get_text() for page in document)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Direct PDF text extraction failed: %s", exc)
            return ""

    def ocr_pdf_text(self, content: bytes) -> str:
        pages: list[str] = []
        try:
            with fitz.open(stream=content, filetype="pdf") as document:
                matrix = fitz.Matrix(self._ocr_zoom, self._ocr_zoom)
                for index, page in enumerate(document):
                    if index >= self._max_ocr_pages:
                        break
                    pixmap = page.get_pixmap(matrix=matrix)
                    image = Image.open(io.BytesIO(pixmap.tobytes("png")))
                    pages.append(
                        pytesseract.image_to_string(image, timeout=self._ocr_timeout_seconds)
                    )
        except Exception as exc:  # noqa: BLE001
            logger.warning("OCR extraction failed: %s", exc)
            return ""
        return "\n".join(text for text in pages if text.strip())

    @staticmethod
    def html_text(content: bytes) -> str:
        soup = BeautifulSoup(content, "html.parser")
        for node in soup(["script", "style"]):
            node.decompose()
        return soup.get_text("\n")
