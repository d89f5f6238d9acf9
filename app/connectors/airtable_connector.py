"""
app/connectors/airtable_connector.py

Airtable connector for pushing lien records and enrichment updates.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any
from urllib.parse import quote

import requests

from app.config import SyncSettings
from app.connectors.base import BaseConnector, ConnectorRequestError
from app.domain.liens import Lien

logger = logging.getLogger(__name__)

MAX_RECORDS_PER_REQUEST = 10
NEW_RECORD_STATUS = "New"
ENRICHED_CONFIDENCE_SCORE = 95
UNKNOWN_COUNTY = "Unknown County"


def lien_to_fields(lien: Lien, *, county_name: str | None, batch_id: date) -> dict[str, Any]:
    """
    Map a lien onto the columns of the external lien table.
    """

    names = lien.debtor_name
    if lien.creditor_name:
        names = f"{names} / {lien.creditor_name}"
    return {
        "Status": NEW_RECORD_STATUS,
        "County Name": county_name or UNKNOWN_COUNTY,
        "Document ID": lien.recording_number,
        "Scrape Batch ID": batch_id.isoformat(),
        "Grantor/Grantee Names": names,
        "Lien Amount": float(lien.amount),
    }


class AirtableConnector(BaseConnector):
    """
    Thin client over the Airtable records API for one table.
    """

    def __init__(
        self,
        *,
        settings: SyncSettings,
        session: requests.Session | None = None,
    ) -> None:
        if not settings.is_configured:
            raise ValueError("Airtable connector requires an API key and base id.")
        super().__init__(
            source="airtable",
            timeout_seconds=settings.timeout_seconds,
            max_retries=settings.max_retries,
            backoff_initial_seconds=settings.backoff_initial_seconds,
            backoff_multiplier=settings.backoff_multiplier,
            rate_limit_per_second=settings.rate_limit_per_second,
            session=session,
        )
        self._settings = settings

    @property
    def table_url(self) -> str:
        return f"{self._settings.api_url}/{self._settings.base_id}/{quote(self._settings.table_name)}"

    def create_records(self, records: list[dict[str, Any]]) -> list[str]:
        """
        Create up to ten records in one request and return their ids in order.
        """

        if not records:
            return []
        if len(records) > MAX_RECORDS_PER_REQUEST:
            raise ValueError(
                f"At most {MAX_RECORDS_PER_REQUEST} records can be created per request; got {len(records)}."
            )

        payload = self._request_json(
            method="POST",
            url=self.table_url,
            json_body={"records": [{"fields": fields} for fields in records]},
            headers=self._headers(),
        )
        created = payload.get("records") if isinstance(payload, dict) else None
        if not isinstance(created, list) or len(created) != len(records):
            raise ConnectorRequestError(
                f"{self.source}: expected {len(records)} created records in response."
            )

        record_ids: list[str] = []
        for item in created:
            record_id = item.get("id") if isinstance(item, dict) else None
            if not isinstance(record_id, str) or not record_id:
                raise ConnectorRequestError(f"{self.source}: created record is missing an id.")
            record_ids.append(record_id)

        logger.info("Airtable records created table=%s count=%s", self._settings.table_name, len(record_ids))
        return record_ids

    def update_record(self, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        payload = self._request_json(
            method="PATCH",
            url=f"{self.table_url}/{quote(record_id)}",
            json_body={"fields": fields},
            headers=self._headers(),
        )
        if not isinstance(payload, dict):
            raise ConnectorRequestError(f"{self.source}: update response was not an object.")
        return payload

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
        }
