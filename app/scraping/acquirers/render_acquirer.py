"""
Browser-driven acquisition for recorders that only expose a search form.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from app.domain.liens import DateRange
from app.scraping.base import DocumentAcquirer
from app.scraping.config.models import AcquisitionStrategy
from app.scraping.logging_utils import log_event
from app.scraping.parsing.result_pages import ResultPageParser

logger = logging.getLogger(__name__)


class RenderSession(Protocol):
    def new_page(self) -> Any:
        ...

    def close(self) -> None:
        ...


class PlaywrightRenderSession:
    """
    Lazily launched headless Chromium context shared by one acquirer.
    """

    def __init__(self, *, headless: bool, user_agent: str, timeout_ms: int) -> None:
        self._headless = headless
        self._user_agent = user_agent
        self._timeout_ms = timeout_ms
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None

    def new_page(self) -> Any:
        if self._context is None:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(headless=self._headless)
            self._context = self._browser.new_context(
                user_agent=self._user_agent,
                viewport={"width": 1920, "height": 1080},
            )
            self._context.set_default_timeout(self._timeout_ms)
        return self._context.new_page()

    def close(self) -> None:
        for resource in (self._context, self._browser):
            if resource is None:
                continue
            try:
                resource.close()
            except PlaywrightError as exc:
                logger.warning("Failed to close browser resource: %s", exc)
        if self._playwright is not None:
            self._playwright.stop()
        self._playwright = None
        self._browser = None
        self._context = None


class RenderDocumentAcquirer(DocumentAcquirer):
    """
    Fills the recorder search form in a real browser and reads result pages.
    """

    strategy = AcquisitionStrategy.RENDER

    def __init__(self, *, render_session: RenderSession | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._render_session = render_session or PlaywrightRenderSession(
            headless=self.settings.headless,
            user_agent=self.settings.user_agent,
            timeout_ms=self.settings.render_timeout_ms,
        )
        self._page: Any = None

    def discover_identifiers(self, date_range: DateRange) -> list[str]:
        page = self._get_page()
        timeout_ms = self.settings.render_timeout_ms
        delays = self.descriptor.delays

        page.goto(self.search_url_for(date_range), wait_until="domcontentloaded", timeout=timeout_ms)
        page.wait_for_timeout(delays.page_load_ms)
        self._submit_search(page, date_range)

        results_selector = self.descriptor.selector("results_table")
        if results_selector:
            try:
                page.wait_for_selector(results_selector, timeout=timeout_ms)
            except PlaywrightTimeoutError:
                log_event(
                    logger,
                    logging.WARNING,
                    "results_table_not_found",
                    source=self.source.name,
                    selector=results_selector,
                )

        identifiers: list[str] = []
        seen: set[str] = set()
        pages_read = 0
        while True:
            pages_read += 1
            soup = BeautifulSoup(page.content(), "html.parser")
            for identifier in ResultPageParser.extract_identifiers(
                soup=soup,
                identifier_pattern=self.descriptor.identifier_pattern,
                results_selector=results_selector,
                link_selector=self.descriptor.selector("record_links"),
            ):
                if identifier not in seen:
                    seen.add(identifier)
                    identifiers.append(identifier)

            if pages_read >= self.page_ceiling or not self._go_to_next_page(page):
                break

        log_event(
            logger,
            logging.INFO,
            "result_pages_scanned",
            source=self.source.name,
            pages=pages_read,
            identifiers=len(identifiers),
        )
        return identifiers

    def close(self) -> None:
        if self._page is not None:
            try:
                self._page.close()
            except PlaywrightError as exc:
                logger.warning("Failed to close page source=%s error=%s", self.source.name, exc)
            self._page = None
        self._render_session.close()

    def _get_page(self) -> Any:
        if self._page is None:
            self._page = self._render_session.new_page()
        return self._page

    def _submit_search(self, page: Any, date_range: DateRange) -> None:
        descriptor = self.descriptor
        timeout_ms = self.settings.render_timeout_ms

        type_field = descriptor.selector("document_type_field")
        type_value = descriptor.selector("document_type_value")
        if type_field and type_value:
            try:
                page.select_option(type_field, type_value, timeout=timeout_ms)
            except PlaywrightError as exc:
                # Some recorders preselect the document type; keep going.
                log_event(
                    logger,
                    logging.WARNING,
                    "document_type_select_failed",
                    source=self.source.name,
                    selector=type_field,
                    error=str(exc),
                )

        page.fill(
            descriptor.selectors["start_date_field"],
            date_range.date_from.strftime(descriptor.date_format),
            timeout=timeout_ms,
        )
        page.fill(
            descriptor.selectors["end_date_field"],
            date_range.date_to.strftime(descriptor.date_format),
            timeout=timeout_ms,
        )
        page.click(descriptor.selectors["search_button"], timeout=timeout_ms)
        self._wait_for_results(page)

    def _go_to_next_page(self, page: Any) -> bool:
        next_selector = self.descriptor.selector("next_page")
        if not next_selector:
            return False

        control = page.locator(next_selector).first
        if control.count() == 0 or self._control_disabled(control):
            return False

        control.click(timeout=self.settings.render_timeout_ms)
        self._wait_for_results(page)
        return True

    def _wait_for_results(self, page: Any) -> None:
        try:
            page.wait_for_load_state("networkidle", timeout=self.settings.render_timeout_ms)
        except PlaywrightTimeoutError:
            log_event(logger, logging.WARNING, "results_load_timeout", source=self.source.name)
        page.wait_for_timeout(self.descriptor.delays.page_load_ms)

    @staticmethod
    def _control_disabled(control: Any) -> bool:
        if control.is_disabled():
            return True
        if (control.get_attribute("aria-disabled") or "").lower() == "true":
            return True
        return "disabled" in (control.get_attribute("class") or "").lower()
