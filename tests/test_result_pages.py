"""
tests/test_result_pages.py

ResultPageParser tests over small static HTML fixtures.
"""

from __future__ import annotations

from bs4 import BeautifulSoup

from app.scraping.parsing.result_pages import ResultPageParser

IDENTIFIER_PATTERN = r"^\d{10,12}$"

RESULTS_HTML = """
<html><body>
  <table id="nav"><tr><td>2026101600</td></tr></table>
  <table id="results">
    <tr><th>Recording Number</th><th>Type</th></tr>
    <tr><td><a href="/docs/20260012345">20260012345</a></td><td>MEDICAL LN</td></tr>
    <tr><td><a href="/docs/20260012346">20260012346</a></td><td>MEDICAL LN</td></tr>
    <tr><td>20260012345</td><td>duplicate cell</td></tr>
    <tr><td>12345</td><td>too short</td></tr>
  </table>
  <a class="pager" href="?page=2">Next</a>
</body></html>
"""


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestExtractIdentifiers:
    def test_scoped_to_results_selector_in_first_seen_order(self) -> None:
        identifiers = ResultPageParser.extract_identifiers(
            soup=_soup(RESULTS_HTML),
            identifier_pattern=IDENTIFIER_PATTERN,
            results_selector="table#results",
        )
        assert identifiers == ["20260012345", "20260012346"]

    def test_whole_page_when_selector_matches_nothing(self) -> None:
        identifiers = ResultPageParser.extract_identifiers(
            soup=_soup(RESULTS_HTML),
            identifier_pattern=IDENTIFIER_PATTERN,
            results_selector="table#missing",
        )
        assert identifiers == ["2026101600", "20260012345", "20260012346"]

    def test_link_selector_limits_candidates(self) -> None:
        identifiers = ResultPageParser.extract_identifiers(
            soup=_soup(RESULTS_HTML),
            identifier_pattern=IDENTIFIER_PATTERN,
            results_selector="table#results",
            link_selector="a",
        )
        assert identifiers == ["20260012345", "20260012346"]

    def test_unanchored_pattern_keeps_only_the_match(self) -> None:
        html = "<table><tr><td>Doc 20260012345 MEDICAL LN</td></tr></table>"
        identifiers = ResultPageParser.extract_identifiers(
            soup=_soup(html),
            identifier_pattern=r"\d{11}",
        )
        assert identifiers == ["20260012345"]

    def test_invalid_selector_falls_back_to_page(self) -> None:
        identifiers = ResultPageParser.extract_identifiers(
            soup=_soup(RESULTS_HTML),
            identifier_pattern=IDENTIFIER_PATTERN,
            results_selector="table[[",
        )
        assert "20260012345" in identifiers


class TestNextPage:
    def test_next_link_text_resolves_against_page_url(self) -> None:
        url = ResultPageParser.find_next_page_url(
            soup=_soup(RESULTS_HTML),
            page_url="https://recorder.example.gov/search?page=1",
        )
        assert url == "https://recorder.example.gov/search?page=2"

    def test_disabled_control_ends_pagination(self) -> None:
        html = '<a class="next disabled" href="?page=3">Next</a>'
        url = ResultPageParser.find_next_page_url(
            soup=_soup(html),
            page_url="https://recorder.example.gov/search?page=2",
            next_selector="a.next",
        )
        assert url is None

    def test_javascript_links_are_ignored(self) -> None:
        html = '<a rel="next" href="javascript:__doPostBack()">Next</a>'
        url = ResultPageParser.find_next_page_url(
            soup=_soup(html),
            page_url="https://recorder.example.gov/search",
        )
        assert url is None
