"""
Acquisition strategy registry and factory.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import requests

from app.config import PipelineSettings
from app.scraping.acquirers import DirectDocumentAcquirer, RenderDocumentAcquirer
from app.scraping.base import DocumentAcquirer
from app.scraping.config.models import AcquisitionStrategy, SourceConfig
from app.scraping.rate_limiter import DomainRateLimiter


class AcquirerRegistry:
    """
    Maps a descriptor's strategy tag to its acquirer class.
    """

    def __init__(self, registrations: Mapping[str, type[DocumentAcquirer]] | None = None) -> None:
        builtins: dict[str, type[DocumentAcquirer]] = {
            AcquisitionStrategy.RENDER: RenderDocumentAcquirer,
            AcquisitionStrategy.DIRECT: DirectDocumentAcquirer,
        }
        if registrations:
            builtins.update(registrations)
        self._registrations = builtins

    def register(self, *, strategy: str, acquirer_class: type[DocumentAcquirer]) -> None:
        self._registrations[strategy.strip().lower()] = acquirer_class

    @property
    def strategies(self) -> list[str]:
        return sorted(self._registrations.keys())

    def create_acquirer(
        self,
        *,
        source: SourceConfig,
        settings: PipelineSettings,
        session: requests.Session,
        rate_limiter: DomainRateLimiter,
        **extra: Any,
    ) -> DocumentAcquirer:
        acquirer_class = self._registrations.get(source.descriptor.strategy)
        if acquirer_class is None:
            allowed = ", ".join(self.strategies)
            raise ValueError(
                f"Unknown strategy='{source.descriptor.strategy}' for source='{source.name}'. "
                f"Allowed strategies: {allowed}."
            )
        return acquirer_class(
            source=source,
            settings=settings,
            session=session,
            rate_limiter=rate_limiter,
            **extra,
        )
