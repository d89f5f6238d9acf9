"""
Plain HTTP acquisition for recorders whose results are server-rendered.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from app.domain.liens import DateRange
from app.scraping.base import DocumentAcquirer
from app.scraping.config.models import AcquisitionStrategy
from app.scraping.logging_utils import log_event
from app.scraping.parsing.result_pages import ResultPageParser

logger = logging.getLogger(__name__)


class DirectDocumentAcquirer(DocumentAcquirer):
    """
    Fetches result pages with GET requests and follows next-page links.
    """

    strategy = AcquisitionStrategy.DIRECT

    def discover_identifiers(self, date_range: DateRange) -> list[str]:
        page_url: str | None = self.search_url_for(date_range)
        visited: set[str] = set()
        identifiers: list[str] = []
        seen: set[str] = set()

        while page_url and page_url not in visited and len(visited) < self.page_ceiling:
            if visited:
                self.rate_limiter.wait(url=page_url, delay_ms=self.descriptor.delays.page_load_ms)
                try:
                    response = self._request_with_retry(page_url)
                except Exception as exc:
                    log_event(
                        logger,
                        logging.WARNING,
                        "result_page_failed",
                        source=self.source.name,
                        page_url=page_url,
                        error=str(exc),
                    )
                    break
            else:
                # First page failures abort the whole source.
                response = self._request_with_retry(page_url)
            visited.add(page_url)

            soup = BeautifulSoup(response.text, "html.parser")
            for identifier in ResultPageParser.extract_identifiers(
                soup=soup,
                identifier_pattern=self.descriptor.identifier_pattern,
                results_selector=self.descriptor.selector("results_table"),
                link_selector=self.descriptor.selector("record_links"),
            ):
                if identifier not in seen:
                    seen.add(identifier)
                    identifiers.append(identifier)

            page_url = ResultPageParser.find_next_page_url(
                soup=soup,
                page_url=page_url,
                next_selector=self.descriptor.selector("next_page"),
            )

        log_event(
            logger,
            logging.INFO,
            "result_pages_scanned",
            source=self.source.name,
            pages=len(visited),
            identifiers=len(identifiers),
        )
        return identifiers
