"""
tests/test_field_extractor.py

Unit tests for lien field extraction from document text.

Pure Python: text in, LienInput (or None) out.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import pytest

from app.extraction import FieldExtractor
from app.extraction import strategies

FALLBACK_DAY = date(2026, 10, 16)

LABELED_DOCUMENT = """MEDICAL LIEN NOTICE
Debtor: John Q Public
123 Main Street
Phoenix, AZ 85001
Creditor: Valley Regional Hospital
Amount Claimed: $25,000.00
Recording Date: 10/15/2026
"""


@pytest.fixture()
def extractor() -> FieldExtractor:
    return FieldExtractor()


def _extract(extractor: FieldExtractor, text: str, **kwargs):
    return extractor.extract(
        text,
        identifier=kwargs.pop("identifier", "20260012345"),
        fallback_date=kwargs.pop("fallback_date", FALLBACK_DAY),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Labeled documents
# ---------------------------------------------------------------------------


class TestLabeledDocument:
    def test_extracts_every_field(self, extractor: FieldExtractor) -> None:
        source_id = uuid.uuid4()
        lien = _extract(
            extractor,
            LABELED_DOCUMENT,
            document_url="https://recorder.example.gov/docs/20260012345.pdf",
            source_id=source_id,
        )

        assert lien is not None
        assert lien.recording_number == "20260012345"
        assert lien.debtor_name == "John Q Public"
        assert lien.debtor_address == "123 Main Street, Phoenix, AZ 85001"
        assert lien.creditor_name == "Valley Regional Hospital"
        assert lien.amount == Decimal("25000.00")
        assert lien.record_date == date(2026, 10, 15)
        assert lien.document_url == "https://recorder.example.gov/docs/20260012345.pdf"
        assert lien.source_id == source_id

    def test_record_date_falls_back_when_absent(self, extractor: FieldExtractor) -> None:
        text = LABELED_DOCUMENT.replace("Recording Date: 10/15/2026\n", "")
        lien = _extract(extractor, text)
        assert lien is not None
        assert lien.record_date == FALLBACK_DAY


# ---------------------------------------------------------------------------
# Amount strategies
# ---------------------------------------------------------------------------


class TestAmounts:
    def test_largest_plausible_dollar_figure_is_used_without_labels(
        self, extractor: FieldExtractor
    ) -> None:
        text = (
            "JANE DOE\n"
            "Services rendered $500.00 on admission.\n"
            "Balance carried $12,345.67 after insurance.\n"
            "Reference figure $99,999,999.00\n"
        )
        lien = _extract(extractor, text)
        assert lien is not None
        assert lien.amount == Decimal("12345.67")

    def test_small_labeled_amount_is_ignored(self, extractor: FieldExtractor) -> None:
        text = "JANE DOE\nAmount: $500.00\n"
        assert _extract(extractor, text) is None

    def test_configured_pattern_wins(self, extractor: FieldExtractor) -> None:
        text = "JANE DOE\nAmount Claimed: $5,000.00\nBalance Due 30,000.00\n"
        lien = _extract(extractor, text, patterns={"amount": r"Balance Due\s+([\d,.]+)"})
        assert lien is not None
        assert lien.amount == Decimal("30000.00")

    def test_labels_are_tried_in_priority_order(self) -> None:
        text = "Total Amount: $9,000.00\nAmount Claimed: $21,500.00\n"
        found = strategies.amount_from_labels(text)
        assert found == (Decimal("21500.00"), "amount_claimed")

    def test_oversized_amounts_are_rejected(self, extractor: FieldExtractor) -> None:
        text = "Debtor: Jane Doe\nAmount claimed due: $123,456,789,012.00\n"
        assert _extract(extractor, text) is None
        assert strategies.amount_from_pattern("Balance Due 99,000,000.00", r"Balance Due\s+([\d,.]+)") is None

    def test_oversized_label_falls_through_to_next_match(self) -> None:
        text = "Amount Claimed: $123,456,789,012.00\nAmount Claimed: $22,000.00\n"
        assert strategies.amount_from_labels(text) == (Decimal("22000.00"), "amount_claimed")

    def test_no_amount_yields_none(self, extractor: FieldExtractor) -> None:
        assert _extract(extractor, "JANE DOE\nNo figures in this document.\n") is None


# ---------------------------------------------------------------------------
# Name strategies
# ---------------------------------------------------------------------------


class TestNames:
    def test_caps_line_skips_generic_header_words(self, extractor: FieldExtractor) -> None:
        text = "COUNTY RECORDER\nJANE DOE\nAmount Claimed: $30,000.00\n"
        lien = _extract(extractor, text)
        assert lien is not None
        assert lien.debtor_name == "JANE DOE"

    def test_title_case_line_is_last_resort(self) -> None:
        lines = strategies.document_lines("notice of lien\nMaria Gonzalez resides here\n")
        match = strategies.name_from_title_case(lines)
        assert match is not None
        assert match.value == "Maria Gonzalez resides here"
        assert match.strategy == "title_case"

    def test_unknown_debtor_when_no_name_found(self, extractor: FieldExtractor) -> None:
        lien = _extract(extractor, "lien amount claimed: $45,000.00\n")
        assert lien is not None
        assert lien.debtor_name == "Unknown"

    def test_empty_text_yields_none(self, extractor: FieldExtractor) -> None:
        assert _extract(extractor, "   \n") is None


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


class TestParsingHelpers:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("10/15/2026", date(2026, 10, 15)),
            ("2026-10-15", date(2026, 10, 15)),
            ("October 15, 2026", date(2026, 10, 15)),
            ("15.10.2026", None),
        ],
    )
    def test_parse_date(self, raw: str, expected: date | None) -> None:
        assert strategies.parse_date(raw) == expected

    def test_parse_amount_rejects_garbage(self) -> None:
        assert strategies.parse_amount("12,500.5") == Decimal("12500.50")
        assert strategies.parse_amount("abc") is None
        assert strategies.parse_amount(None) is None
