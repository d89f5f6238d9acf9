"""
app/api/routers package marker.
"""

from app.api.routers.audit import router as audit_router
from app.api.routers.export import router as export_router
from app.api.routers.liens import router as liens_router
from app.api.routers.pipeline import router as pipeline_router
from app.api.routers.schedule import router as schedule_router
from app.api.routers.sources import router as sources_router

__all__ = [
    "audit_router",
    "export_router",
    "liens_router",
    "pipeline_router",
    "schedule_router",
    "sources_router",
]
