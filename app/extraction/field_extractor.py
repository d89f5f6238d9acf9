"""
Compose extraction strategies into a structured lien candidate.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal

from app.domain.liens import LienInput
from app.extraction import strategies
from app.extraction.strategies import FieldMatch

logger = logging.getLogger(__name__)

UNKNOWN_DEBTOR = "Unknown"


class FieldExtractor:
    """
    Turns document text into a LienInput, or None when no amount is found.

    Source-configured patterns are tried before the built-in heuristics.
    """

    def extract(
        self,
        text: str,
        *,
        identifier: str,
        fallback_date: date,
        document_url: str | None = None,
        patterns: Mapping[str, str] | None = None,
        source_id: uuid.UUID | None = None,
    ) -> LienInput | None:
        if not text or not text.strip():
            logger.debug("No text to extract identifier=%s", identifier)
            return None

        patterns = patterns or {}
        lines = strategies.document_lines(text)

        amount = self._extract_amount(text, patterns)
        if amount is None:
            logger.info("No plausible amount found identifier=%s", identifier)
            return None

        name_match = self._first_match(
            lambda: strategies.name_from_pattern(text, lines, patterns.get("debtor")),
            lambda: strategies.name_from_label(lines),
            lambda: strategies.name_from_caps_line(lines),
            lambda: strategies.name_from_title_case(lines),
        )
        debtor_address = None
        if name_match is not None:
            debtor_address = strategies.address_near(lines, name_match.line_index)
        if debtor_address is None:
            debtor_address = strategies.address_from_pattern(text, patterns.get("address"))

        creditor_match = self._first_match(
            lambda: strategies.name_from_pattern(text, lines, patterns.get("creditor")),
            lambda: strategies.creditor_from_label(lines),
        )
        creditor_address = None
        if creditor_match is not None:
            creditor_address = strategies.address_near(lines, creditor_match.line_index)

        record_date = strategies.record_date_from_text(text, patterns.get("record_date")) or fallback_date

        logger.debug(
            "Extracted identifier=%s amount=%s name_strategy=%s",
            identifier,
            amount,
            name_match.strategy if name_match else None,
        )
        return LienInput(
            recording_number=identifier,
            record_date=record_date,
            debtor_name=name_match.value if name_match else UNKNOWN_DEBTOR,
            amount=amount,
            debtor_address=debtor_address,
            creditor_name=creditor_match.value if creditor_match else None,
            creditor_address=creditor_address,
            document_url=document_url,
            source_id=source_id,
        )

    @staticmethod
    def _extract_amount(text: str, patterns: Mapping[str, str]) -> Decimal | None:
        configured = strategies.amount_from_pattern(text, patterns.get("amount"))
        if configured is not None:
            return configured
        labeled = strategies.amount_from_labels(text)
        if labeled is not None:
            return labeled[0]
        return strategies.amount_from_dollar_figures(text)

    @staticmethod
    def _first_match(*candidates: Callable[[], FieldMatch | None]) -> FieldMatch | None:
        for candidate in candidates:
            match = candidate()
            if match is not None:
                return match
        return None
