"""
Base document acquirer abstraction for recorder sources.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from urllib.parse import quote

import requests

from app.config import PipelineSettings
from app.domain.errors import AcquisitionError, DocumentFetchError
from app.domain.liens import DateRange, RawDocument
from app.scraping.config.models import SourceConfig
from app.scraping.logging_utils import log_event
from app.scraping.rate_limiter import DomainRateLimiter

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def _never_stop() -> bool:
    return False


class DocumentAcquirer(ABC):
    """
    Base class implementing search enumeration and polite document fetching.

    Subclasses only decide how result identifiers are discovered; every
    strategy fetches documents through the descriptor's URL template.
    """

    strategy: str = ""

    def __init__(
        self,
        *,
        source: SourceConfig,
        settings: PipelineSettings,
        session: requests.Session,
        rate_limiter: DomainRateLimiter,
    ) -> None:
        self.source = source
        self.descriptor = source.descriptor
        self.settings = settings
        self.session = session
        self.rate_limiter = rate_limiter
        self.documents_failed = 0

        self.request_headers = {"User-Agent": settings.user_agent, **self.descriptor.headers}

    @property
    def page_ceiling(self) -> int:
        if self.descriptor.max_pages is not None:
            return min(self.descriptor.max_pages, self.settings.max_pages)
        return self.settings.max_pages

    def search_url_for(self, date_range: DateRange) -> str:
        """
        Search URL with `{from_date}`/`{to_date}` rendered in the descriptor's date format.
        """

        date_format = self.descriptor.date_format
        return self.descriptor.search_url.replace(
            "{from_date}", quote(date_range.date_from.strftime(date_format), safe="")
        ).replace(
            "{to_date}", quote(date_range.date_to.strftime(date_format), safe="")
        )

    def acquire(
        self,
        *,
        date_range: DateRange,
        should_stop: Callable[[], bool] = _never_stop,
    ) -> Iterator[RawDocument]:
        """
        Lazily yield fetched documents for the date range.

        Raises AcquisitionError when the source cannot be searched at all.
        Individual document failures are logged and skipped.
        """

        try:
            identifiers = self.discover_identifiers(date_range)
        except AcquisitionError:
            raise
        except Exception as exc:
            raise AcquisitionError(
                f"Search failed for source '{self.source.name}': {type(exc).__name__}: {exc}"
            ) from exc

        log_event(
            logger,
            logging.INFO,
            "source_identifiers_discovered",
            source=self.source.name,
            strategy=self.strategy,
            identifiers=len(identifiers),
            **date_range.to_payload(),
        )

        for identifier in identifiers:
            if should_stop():
                log_event(logger, logging.INFO, "source_acquisition_stopped", source=self.source.name)
                return

            url = self.descriptor.document_url(identifier)
            self.rate_limiter.wait(url=url, delay_ms=self.descriptor.delays.between_requests_ms)
            try:
                document = self.fetch_document(identifier)
            except Exception as exc:
                self.documents_failed += 1
                log_event(
                    logger,
                    logging.WARNING,
                    "document_fetch_failed",
                    source=self.source.name,
                    identifier=identifier,
                    url=url,
                    error=str(exc),
                )
                continue
            yield document

    @abstractmethod
    def discover_identifiers(self, date_range: DateRange) -> list[str]:
        """
        Run the search and return de-duplicated record identifiers.
        """

    def fetch_document(self, identifier: str) -> RawDocument:
        url = self.descriptor.document_url(identifier)
        response = self._request_with_retry(url)
        return RawDocument(
            identifier=identifier,
            content=response.content,
            content_type=response.headers.get("Content-Type", ""),
            url=url,
        )

    def close(self) -> None:
        """
        Release strategy resources. Safe to call more than once.
        """

    def __enter__(self) -> DocumentAcquirer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request_with_retry(self, url: str) -> requests.Response:
        last_error: Exception | None = None

        for attempt in range(self.settings.max_retries + 1):
            try:
                response = self.session.get(
                    url,
                    headers=self.request_headers,
                    timeout=self.settings.http_timeout_seconds,
                    allow_redirects=True,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable status={response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except (requests.Timeout, requests.ConnectionError, requests.HTTPError) as exc:
                last_error = exc
                if isinstance(exc, requests.HTTPError):
                    status_code = exc.response.status_code if exc.response is not None else None
                    if status_code not in RETRYABLE_STATUS_CODES:
                        raise DocumentFetchError(f"Failed to fetch {url}: {exc}") from exc

            if attempt >= self.settings.max_retries:
                break

            backoff_seconds = self.settings.backoff_initial_seconds * (
                self.settings.backoff_multiplier**attempt
            )
            time.sleep(backoff_seconds)

        raise DocumentFetchError(f"Failed to fetch {url} after retries: {last_error}")
