# API endpoints and routers

from .phrase_endpoints import router as phrase_router
from .translation_endpoints import router as translation_router

__all__ = [
    "phrase_router",
    "translation_router",
]
