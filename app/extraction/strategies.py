"""
Named, pure field-extraction strategies over lien document text.

Each strategy takes text (or its non-empty lines) and returns a match or
None. The field extractor composes them in priority order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

MAX_NAME_LENGTH = 100
MAX_ADDRESS_LENGTH = 200
MIN_LABELED_AMOUNT = Decimal("1000")
MIN_FALLBACK_AMOUNT = Decimal("1000")
MAX_FALLBACK_AMOUNT = Decimal("10000000")
# liens.amount is Numeric(12, 2)
MAX_LIEN_AMOUNT = MAX_FALLBACK_AMOUNT

NAME_LABEL_SCAN_LINES = 30
CAPS_NAME_SCAN_LINES = 10
TITLE_CASE_SCAN_LINES = 15
ADDRESS_LOOKAHEAD_LINES = 5

GENERIC_DOCUMENT_WORDS = ("LIEN", "MEDICAL", "NOTICE", "RECORDER", "COUNTY", "STATE OF")

_AMOUNT_VALUE = r"\$?\s?([\d,]+(?:\.\d{2})?)"

NAME_LABEL = re.compile(r"\b(?:DEBTOR|PATIENT|NAME)\s*:\s*(.*)$", re.IGNORECASE)
CREDITOR_LABEL = re.compile(r"\bCREDITOR\s*:\s*(.*)$", re.IGNORECASE)
CAPS_LINE = re.compile(r"^[A-Z][A-Z\s,.-]+$")
TITLE_CASE_LINE = re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+")
STREET_LINE = re.compile(
    r"^\d+\s+.*\b(?:Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Boulevard|Blvd|Lane|Ln|Way|Court|Ct|"
    r"Circle|Cir|Place|Pl)\b",
    re.IGNORECASE,
)
CITY_STATE_ZIP_LINE = re.compile(r"^.+,\s*(?:[A-Z]{2}|Arizona)\s+\d{5}(?:-\d{4})?\b")
RECORD_DATE_LABEL = re.compile(
    r"\b(?:recording|recorded|record)\s+date[:\s]+(\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{2}-\d{2})",
    re.IGNORECASE,
)
DOLLAR_FIGURE = re.compile(r"\$\s?([\d,]+(?:\.\d{2})?)")

LABELED_AMOUNT_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("amount_claimed", re.compile(r"amount\s+claimed[^$\d\n]{0,80}" + _AMOUNT_VALUE, re.IGNORECASE)),
    ("amount_of_lien", re.compile(r"amount\s+of\s+(?:the\s+)?lien[:\s]+" + _AMOUNT_VALUE, re.IGNORECASE)),
    ("principal_amount", re.compile(r"principal\s+amount[:\s]+" + _AMOUNT_VALUE, re.IGNORECASE)),
    ("total_amount", re.compile(r"total\s+amount[:\s]+" + _AMOUNT_VALUE, re.IGNORECASE)),
    ("sum_of", re.compile(r"for\s+the\s+sum\s+of[:\s]+" + _AMOUNT_VALUE, re.IGNORECASE)),
    ("in_the_amount_of", re.compile(r"in\s+the\s+amount\s+of[:\s]+" + _AMOUNT_VALUE, re.IGNORECASE)),
    ("amount_label", re.compile(r"\bamount[:\s]+" + _AMOUNT_VALUE, re.IGNORECASE)),
)

DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%B %d, %Y", "%b %d, %Y")


@dataclass(frozen=True)
class FieldMatch:
    """
    A matched text field with the strategy that produced it.
    """

    value: str
    strategy: str
    line_index: int | None = None


def document_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def clean_value(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip(" \t,;:")


def match_pattern(text: str, pattern: str | None) -> str | None:
    """
    Apply a configured regex; the first capture group wins when present.
    """

    if not pattern:
        return None
    match = re.search(pattern, text, flags=re.IGNORECASE)
    if match is None:
        return None
    raw = match.group(1) if match.lastindex else match.group(0)
    value = clean_value(raw or "")
    return value or None


def parse_amount(raw: str | None) -> Decimal | None:
    if not raw:
        return None
    try:
        value = Decimal(raw.replace(",", "").strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value.quantize(Decimal("0.01"))


def parse_date(raw: str | None) -> date | None:
    if not raw:
        return None
    compact = clean_value(raw)
    for date_format in DATE_FORMATS:
        try:
            return datetime.strptime(compact, date_format).date()
        except ValueError:
            continue
    return None


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


def name_from_pattern(text: str, lines: list[str], pattern: str | None) -> FieldMatch | None:
    value = match_pattern(text, pattern)
    if value is None or len(value) < 2:
        return None
    value = value[:MAX_NAME_LENGTH]
    return FieldMatch(value=value, strategy="source_pattern", line_index=_line_index_of(lines, value))


def name_from_label(lines: list[str]) -> FieldMatch | None:
    for index, line in enumerate(lines[:NAME_LABEL_SCAN_LINES]):
        match = NAME_LABEL.search(line)
        if match is None:
            continue
        candidate = clean_value(match.group(1))
        if 3 <= len(candidate) <= MAX_NAME_LENGTH:
            return FieldMatch(value=candidate, strategy="label", line_index=index)
    return None


def name_from_caps_line(lines: list[str]) -> FieldMatch | None:
    for index, line in enumerate(lines[:CAPS_NAME_SCAN_LINES]):
        if not 5 <= len(line) <= 50 or not CAPS_LINE.match(line):
            continue
        if any(word in line for word in GENERIC_DOCUMENT_WORDS):
            continue
        return FieldMatch(value=clean_value(line), strategy="caps_line", line_index=index)
    return None


def name_from_title_case(lines: list[str]) -> FieldMatch | None:
    for index, line in enumerate(lines[:TITLE_CASE_SCAN_LINES]):
        if TITLE_CASE_LINE.match(line):
            return FieldMatch(
                value=clean_value(line)[:MAX_NAME_LENGTH],
                strategy="title_case",
                line_index=index,
            )
    return None


# ---------------------------------------------------------------------------
# Addresses and creditor
# ---------------------------------------------------------------------------


def address_near(lines: list[str], line_index: int | None) -> str | None:
    """
    Find a street line within a few lines after `line_index`.

    A following `City, ST 12345` line is appended when present.
    """

    if line_index is None:
        return None
    stop = min(len(lines), line_index + 1 + ADDRESS_LOOKAHEAD_LINES)
    for index in range(line_index + 1, stop):
        if not STREET_LINE.match(lines[index]):
            continue
        address = lines[index]
        if index + 1 < len(lines) and CITY_STATE_ZIP_LINE.match(lines[index + 1]):
            address = f"{address}, {lines[index + 1]}"
        return clean_value(address)[:MAX_ADDRESS_LENGTH]
    return None


def address_from_pattern(text: str, pattern: str | None) -> str | None:
    value = match_pattern(text, pattern)
    return value[:MAX_ADDRESS_LENGTH] if value else None


def creditor_from_label(lines: list[str]) -> FieldMatch | None:
    for index, line in enumerate(lines):
        match = CREDITOR_LABEL.search(line)
        if match is None:
            continue
        candidate = clean_value(match.group(1))
        if len(candidate) >= 2:
            return FieldMatch(value=candidate[:MAX_NAME_LENGTH], strategy="label", line_index=index)
    return None


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def amount_from_pattern(text: str, pattern: str | None) -> Decimal | None:
    value = parse_amount(match_pattern(text, pattern))
    if value is None or value <= 0 or value > MAX_LIEN_AMOUNT:
        return None
    return value


def amount_from_labels(text: str) -> tuple[Decimal, str] | None:
    """
    Try labeled amount phrases in priority order; values must exceed 1,000
    and stay within MAX_LIEN_AMOUNT.
    """

    for name, pattern in LABELED_AMOUNT_PATTERNS:
        for match in pattern.finditer(text):
            value = parse_amount(match.group(1))
            if value is not None and MIN_LABELED_AMOUNT < value <= MAX_LIEN_AMOUNT:
                return value, name
    return None


def amount_from_dollar_figures(text: str) -> Decimal | None:
    """
    Largest dollar figure within the plausible lien range, if any.
    """

    candidates = [
        value
        for value in (parse_amount(match.group(1)) for match in DOLLAR_FIGURE.finditer(text))
        if value is not None and MIN_FALLBACK_AMOUNT <= value <= MAX_FALLBACK_AMOUNT
    ]
    return max(candidates) if candidates else None


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def record_date_from_text(text: str, pattern: str | None = None) -> date | None:
    if pattern:
        configured = parse_date(match_pattern(text, pattern))
        if configured is not None:
            return configured
    match = RECORD_DATE_LABEL.search(text)
    return parse_date(match.group(1)) if match else None


def _line_index_of(lines: list[str], value: str) -> int | None:
    for index, line in enumerate(lines):
        if value in line:
            return index
    return None
