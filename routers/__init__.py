from .catalog import router as catalog_router
from .items import router as items_router
from .oauth import router as oauth_router
from .series import router as series_router
from .session import router as session_router
from .shelves import router as shelves_router

__all__ = [
    "catalog_router",
    "items_router",
    "oauth_router",
    "series_router",
    "session_router",
    "shelves_router",
]
