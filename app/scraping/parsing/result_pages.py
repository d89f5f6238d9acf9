"""
BeautifulSoup-based parsing for recorder search result pages.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

NEXT_LINK_TEXTS = {"next", "next >", "next page", ">", "›", "»", "next »"}


class ResultPageParser:
    """
    Deterministic helpers for result listings.
    """

    @classmethod
    def extract_identifiers(
        cls,
        *,
        soup: BeautifulSoup,
        identifier_pattern: str,
        results_selector: str | None = None,
        link_selector: str | None = None,
    ) -> list[str]:
        """
        Collect identifiers from anchor text and table cells, first-seen order.
        """

        matcher = re.compile(identifier_pattern)
        scopes: list[Tag | BeautifulSoup] = []
        if results_selector:
            scopes.extend(cls._select_elements(soup=soup, selector=results_selector))
        if not scopes:
            scopes.append(soup)

        identifiers: list[str] = []
        seen: set[str] = set()
        for scope in scopes:
            if link_selector:
                candidates = cls._select_elements(soup=scope, selector=link_selector)
            else:
                candidates = scope.find_all(["a", "td"])
            for node in candidates:
                match = matcher.search(cls._clean_text(node.get_text(" ")))
                if match is None:
                    continue
                identifier = match.group(0).strip()
                if identifier and identifier not in seen:
                    seen.add(identifier)
                    identifiers.append(identifier)
        return identifiers

    @classmethod
    def find_next_page_url(
        cls,
        *,
        soup: BeautifulSoup,
        page_url: str,
        next_selector: str | None = None,
    ) -> str | None:
        """
        Return the absolute URL of the next result page, or None at the end.
        """

        if next_selector:
            candidates = cls._select_elements(soup=soup, selector=next_selector)
        else:
            candidates = [
                node
                for node in soup.find_all("a")
                if "next" in (node.get("rel") or [])
                or cls._clean_text(node.get_text(" ")).lower() in NEXT_LINK_TEXTS
            ]

        for node in candidates:
            if cls.is_disabled(node):
                continue
            href = str(node.get("href") or "").strip()
            if not href or href == "#" or href.lower().startswith("javascript:"):
                continue
            return urljoin(page_url, href)
        return None

    @staticmethod
    def is_disabled(node: Tag) -> bool:
        if node.has_attr("disabled"):
            return True
        if str(node.get("aria-disabled", "")).lower() == "true":
            return True
        classes = node.get("class") or []
        return any("disabled" in str(item).lower() for item in classes)

    @staticmethod
    def _select_elements(*, soup: Tag | BeautifulSoup, selector: str) -> list[Tag]:
        try:
            return list(soup.select(selector))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Unsupported CSS selector %r: %s", selector, exc)
            return []

    @staticmethod
    def _clean_text(value: str) -> str:
        return re.sub(r"\s+", " ", value).strip()
