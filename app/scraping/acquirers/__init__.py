"""
Acquisition strategy exports.
"""

from app.scraping.acquirers.direct_acquirer import DirectDocumentAcquirer
from app.scraping.acquirers.render_acquirer import (
    PlaywrightRenderSession,
    RenderDocumentAcquirer,
    RenderSession,
)

__all__ = [
    "DirectDocumentAcquirer",
    "PlaywrightRenderSession",
    "RenderDocumentAcquirer",
    "RenderSession",
]
