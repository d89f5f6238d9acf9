"""
tests/test_airtable_connector.py

AirtableConnector request shaping, response validation, and retry handling
against a fake requests session.
"""

from __future__ import annotations

from typing import Any

import pytest
import requests

from app.config import SyncSettings
from app.connectors import AirtableConnector, ConnectorRequestError

SETTINGS = SyncSettings(
    api_key="pat-test",
    base_id="app123",
    table_name="All Medical Liens",
    max_retries=2,
    backoff_initial_seconds=0.0,
    rate_limit_per_second=1000.0,
)


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status={self.status_code}", response=self)


class FakeSession:
    def __init__(self, responses: list[FakeResponse]) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def request(self, **kwargs: Any) -> FakeResponse:
        self.calls.append(kwargs)
        return self._responses.pop(0)


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("app.connectors.base.time.sleep", lambda seconds: None)


def _connector(responses: list[FakeResponse]) -> tuple[AirtableConnector, FakeSession]:
    session = FakeSession(responses)
    return AirtableConnector(settings=SETTINGS, session=session), session  # type: ignore[arg-type]


class TestCreateRecords:
    def test_posts_fields_and_returns_ids_in_order(self) -> None:
        connector, session = _connector(
            [FakeResponse(200, {"records": [{"id": "recA", "fields": {}}, {"id": "recB", "fields": {}}]})]
        )

        ids = connector.create_records([{"Document ID": "1"}, {"Document ID": "2"}])

        assert ids == ["recA", "recB"]
        call = session.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == "https://api.airtable.com/v0/app123/All%20Medical%20Liens"
        assert call["headers"]["Authorization"] == "Bearer pat-test"
        assert call["json"] == {"records": [{"fields": {"Document ID": "1"}}, {"fields": {"Document ID": "2"}}]}

    def test_more_than_ten_records_is_refused(self) -> None:
        connector, session = _connector([])
        with pytest.raises(ValueError):
            connector.create_records([{"Document ID": str(i)} for i in range(11)])
        assert session.calls == []

    def test_retryable_status_is_retried(self) -> None:
        connector, session = _connector(
            [
                FakeResponse(429, text="rate limited"),
                FakeResponse(503, text="unavailable"),
                FakeResponse(200, {"records": [{"id": "recA"}]}),
            ]
        )

        assert connector.create_records([{"Document ID": "1"}]) == ["recA"]
        assert len(session.calls) == 3

    def test_rejection_is_not_retried(self) -> None:
        connector, session = _connector([FakeResponse(422, text='{"error": "INVALID_VALUE_FOR_COLUMN"}')])

        with pytest.raises(ConnectorRequestError) as exc_info:
            connector.create_records([{"Document ID": "1"}])

        assert exc_info.value.status_code == 422
        assert "INVALID_VALUE_FOR_COLUMN" in str(exc_info.value)
        assert len(session.calls) == 1

    def test_exhausted_retries_raise(self) -> None:
        connector, session = _connector([FakeResponse(500), FakeResponse(500), FakeResponse(500)])

        with pytest.raises(ConnectorRequestError, match="after retries"):
            connector.create_records([{"Document ID": "1"}])
        assert len(session.calls) == 3

    def test_response_count_mismatch_is_an_error(self) -> None:
        connector, _ = _connector([FakeResponse(200, {"records": [{"id": "recA"}]})])
        with pytest.raises(ConnectorRequestError):
            connector.create_records([{"Document ID": "1"}, {"Document ID": "2"}])


class TestUpdateRecord:
    def test_patches_single_record(self) -> None:
        connector, session = _connector([FakeResponse(200, {"id": "recA", "fields": {"Phone": "1"}})])

        connector.update_record("recA", {"Phone": "1"})

        call = session.calls[0]
        assert call["method"] == "PATCH"
        assert call["url"].endswith("/All%20Medical%20Liens/recA")
        assert call["json"] == {"fields": {"Phone": "1"}}


def test_unconfigured_settings_are_rejected() -> None:
    with pytest.raises(ValueError):
        AirtableConnector(settings=SyncSettings())
