"""
app/api/routers package marker.
"""

from app.api.routers.integration_router import router as integration_router

__all__ = [
    "integration_router",
]
