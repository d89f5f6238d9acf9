"""
tests/test_acquirers.py

Direct and render acquisition strategies against fake HTTP sessions and a
fake browser page. No network, no browser.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest
import requests

from app.config import PipelineSettings
from app.domain.errors import AcquisitionError
from app.domain.liens import DateRange
from app.scraping.acquirers import DirectDocumentAcquirer, RenderDocumentAcquirer
from app.scraping.rate_limiter import DomainRateLimiter
from app.scraping.registry import AcquirerRegistry

DAY = DateRange(date_from=date(2026, 10, 16), date_to=date(2026, 10, 16))

PAGE_ONE = """
<table id="results">
  <tr><td><a>20260012345</a></td></tr>
  <tr><td><a>20260012346</a></td></tr>
</table>
<a href="/search?page=2">Next</a>
"""

PAGE_TWO = """
<table id="results">
  <tr><td><a>20260012346</a></td></tr>
  <tr><td><a>20260012347</a></td></tr>
</table>
"""


class FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes = b"", content_type: str = "text/html") -> None:
        self.status_code = status_code
        self.content = body
        self.text = body.decode("utf-8", errors="ignore")
        self.headers = {"Content-Type": content_type}

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status={self.status_code}", response=self)


class FakeSession:
    """
    Serves canned responses keyed by exact URL; anything else is a 404.
    """

    def __init__(self, routes: dict[str, FakeResponse]) -> None:
        self.routes = routes
        self.requested: list[str] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requested.append(url)
        return self.routes.get(url, FakeResponse(status_code=404))


def _document(identifier: str) -> FakeResponse:
    return FakeResponse(body=f"document {identifier}".encode(), content_type="application/pdf")


@pytest.fixture()
def settings() -> PipelineSettings:
    return PipelineSettings(max_retries=0, max_pages=25)


@pytest.fixture()
def rate_limiter() -> DomainRateLimiter:
    return DomainRateLimiter(default_delay_ms=0, sleep=lambda seconds: None)


SEARCH_URL = "https://recorder.example.gov/search?from=10%2F16%2F2026&to=10%2F16%2F2026"
PAGE_TWO_URL = "https://recorder.example.gov/search?page=2"


def _doc_url(identifier: str) -> str:
    return f"https://recorder.example.gov/docs/{identifier}.pdf"


# ---------------------------------------------------------------------------
# Direct strategy
# ---------------------------------------------------------------------------


class TestDirectAcquirer:
    def _acquirer(self, make_source, settings, rate_limiter, session, **overrides) -> DirectDocumentAcquirer:
        source = make_source("Test County", selectors={"results_table": "table#results"}, **overrides)
        return DirectDocumentAcquirer(
            source=source,
            settings=settings,
            session=session,
            rate_limiter=rate_limiter,
        )

    def test_follows_pagination_and_deduplicates(self, make_source, settings, rate_limiter) -> None:
        session = FakeSession(
            {
                SEARCH_URL: FakeResponse(body=PAGE_ONE.encode()),
                PAGE_TWO_URL: FakeResponse(body=PAGE_TWO.encode()),
                _doc_url("20260012345"): _document("20260012345"),
                _doc_url("20260012346"): _document("20260012346"),
                _doc_url("20260012347"): _document("20260012347"),
            }
        )
        acquirer = self._acquirer(make_source, settings, rate_limiter, session)

        documents = list(acquirer.acquire(date_range=DAY))

        assert [doc.identifier for doc in documents] == ["20260012345", "20260012346", "20260012347"]
        assert documents[0].url == _doc_url("20260012345")
        assert documents[0].content == b"document 20260012345"
        assert documents[0].content_type == "application/pdf"
        assert acquirer.documents_failed == 0

    def test_page_ceiling_limits_result_pages(self, make_source, settings, rate_limiter) -> None:
        session = FakeSession(
            {
                SEARCH_URL: FakeResponse(body=PAGE_ONE.encode()),
                PAGE_TWO_URL: FakeResponse(body=PAGE_TWO.encode()),
            }
        )
        acquirer = self._acquirer(make_source, settings, rate_limiter, session, max_pages=1)

        identifiers = acquirer.discover_identifiers(DAY)

        assert identifiers == ["20260012345", "20260012346"]
        assert PAGE_TWO_URL not in session.requested

    def test_failed_document_is_counted_and_skipped(self, make_source, settings, rate_limiter) -> None:
        session = FakeSession(
            {
                SEARCH_URL: FakeResponse(body=PAGE_TWO.encode()),
                _doc_url("20260012347"): _document("20260012347"),
            }
        )
        acquirer = self._acquirer(make_source, settings, rate_limiter, session)

        documents = list(acquirer.acquire(date_range=DAY))

        assert [doc.identifier for doc in documents] == ["20260012347"]
        assert acquirer.documents_failed == 1

    def test_search_failure_raises_acquisition_error(self, make_source, settings, rate_limiter) -> None:
        session = FakeSession({SEARCH_URL: FakeResponse(status_code=503)})
        acquirer = self._acquirer(make_source, settings, rate_limiter, session)

        with pytest.raises(AcquisitionError, match="Test County"):
            list(acquirer.acquire(date_range=DAY))

    def test_stop_signal_ends_enumeration(self, make_source, settings, rate_limiter) -> None:
        session = FakeSession(
            {
                SEARCH_URL: FakeResponse(body=PAGE_TWO.encode()),
                _doc_url("20260012346"): _document("20260012346"),
                _doc_url("20260012347"): _document("20260012347"),
            }
        )
        acquirer = self._acquirer(make_source, settings, rate_limiter, session)
        yielded: list[str] = []

        for document in acquirer.acquire(date_range=DAY, should_stop=lambda: bool(yielded)):
            yielded.append(document.identifier)

        assert yielded == ["20260012346"]


# ---------------------------------------------------------------------------
# Render strategy
# ---------------------------------------------------------------------------


class FakeLocator:
    def __init__(self, page: "FakePage") -> None:
        self._page = page

    @property
    def first(self) -> "FakeLocator":
        return self

    def count(self) -> int:
        return 1 if self._page.index < len(self._page.pages) - 1 else 0

    def is_disabled(self) -> bool:
        return False

    def get_attribute(self, name: str) -> str | None:
        return None

    def click(self, timeout: int | None = None) -> None:
        self._page.index += 1


class FakePage:
    def __init__(self, pages: list[str]) -> None:
        self.pages = pages
        self.index = 0
        self.filled: dict[str, str] = {}
        self.selected: dict[str, str] = {}
        self.clicked: list[str] = []
        self.visited: list[str] = []
        self.closed = False

    def goto(self, url: str, **kwargs: Any) -> None:
        self.visited.append(url)

    def wait_for_timeout(self, ms: int) -> None:
        return None

    def wait_for_load_state(self, state: str, **kwargs: Any) -> None:
        return None

    def wait_for_selector(self, selector: str, **kwargs: Any) -> None:
        return None

    def select_option(self, selector: str, value: str, **kwargs: Any) -> None:
        self.selected[selector] = value

    def fill(self, selector: str, value: str, **kwargs: Any) -> None:
        self.filled[selector] = value

    def click(self, selector: str, **kwargs: Any) -> None:
        self.clicked.append(selector)

    def content(self) -> str:
        return self.pages[self.index]

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self)

    def close(self) -> None:
        self.closed = True


class FakeRenderSession:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.closed = False

    def new_page(self) -> FakePage:
        return self.page

    def close(self) -> None:
        self.closed = True


RENDER_SELECTORS = {
    "document_type_field": "select#doctype",
    "document_type_value": "MEDICAL LN",
    "start_date_field": "#start",
    "end_date_field": "#end",
    "search_button": "#search",
    "results_table": "table#results",
    "next_page": "a.next",
}


class TestRenderAcquirer:
    def _acquirer(
        self,
        source_registry,
        descriptor_factory,
        settings,
        rate_limiter,
        page,
        session,
        search_url="https://recorder.example.gov/recdocdata/",
    ):
        source = source_registry.create(
            name="Rendered County",
            jurisdiction="AZ",
            descriptor=descriptor_factory(
                strategy="render",
                search_url=search_url,
                selectors=RENDER_SELECTORS,
            ),
        )
        render_session = FakeRenderSession(page)
        acquirer = RenderDocumentAcquirer(
            render_session=render_session,
            source=source,
            settings=settings,
            session=session,
            rate_limiter=rate_limiter,
        )
        return acquirer, render_session

    def test_fills_search_form_and_reads_all_pages(
        self, source_registry, descriptor_factory, settings, rate_limiter
    ) -> None:
        page = FakePage([PAGE_ONE, PAGE_TWO])
        acquirer, render_session = self._acquirer(
            source_registry, descriptor_factory, settings, rate_limiter, page, FakeSession({})
        )

        identifiers = acquirer.discover_identifiers(
            DateRange(date_from=date(2026, 10, 1), date_to=date(2026, 10, 16))
        )

        assert identifiers == ["20260012345", "20260012346", "20260012347"]
        assert page.visited == ["https://recorder.example.gov/recdocdata/"]
        assert page.selected == {"select#doctype": "MEDICAL LN"}
        assert page.filled == {"#start": "10/01/2026", "#end": "10/16/2026"}
        assert page.clicked == ["#search"]

        acquirer.close()
        assert page.closed is True
        assert render_session.closed is True

    def test_search_url_template_is_rendered(
        self, source_registry, descriptor_factory, settings, rate_limiter
    ) -> None:
        page = FakePage([PAGE_TWO])
        acquirer, _ = self._acquirer(
            source_registry,
            descriptor_factory,
            settings,
            rate_limiter,
            page,
            FakeSession({}),
            search_url="https://recorder.example.gov/recdocdata/?from={from_date}&to={to_date}",
        )

        acquirer.discover_identifiers(DateRange(date_from=date(2026, 10, 1), date_to=date(2026, 10, 16)))

        assert page.visited == ["https://recorder.example.gov/recdocdata/?from=10%2F01%2F2026&to=10%2F16%2F2026"]

    def test_documents_are_fetched_over_http(
        self, source_registry, descriptor_factory, settings, rate_limiter
    ) -> None:
        page = FakePage([PAGE_TWO])
        session = FakeSession(
            {
                _doc_url("20260012346"): _document("20260012346"),
                _doc_url("20260012347"): _document("20260012347"),
            }
        )
        acquirer, _ = self._acquirer(source_registry, descriptor_factory, settings, rate_limiter, page, session)

        documents = list(acquirer.acquire(date_range=DAY))

        assert [doc.identifier for doc in documents] == ["20260012346", "20260012347"]
        assert session.requested == [_doc_url("20260012346"), _doc_url("20260012347")]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestAcquirerRegistry:
    def test_creates_acquirer_for_strategy(self, make_source, settings, rate_limiter) -> None:
        acquirer = AcquirerRegistry().create_acquirer(
            source=make_source("Direct County"),
            settings=settings,
            session=FakeSession({}),
            rate_limiter=rate_limiter,
        )
        assert isinstance(acquirer, DirectDocumentAcquirer)

    def test_lists_builtin_strategies(self) -> None:
        assert AcquirerRegistry().strategies == ["direct", "render"]
