"""
app/connectors package marker.
"""

from app.connectors.airtable_connector import AirtableConnector, lien_to_fields
from app.connectors.base import BaseConnector, ConnectorRequestError

__all__ = [
    "AirtableConnector",
    "BaseConnector",
    "ConnectorRequestError",
    "lien_to_fields",
]
