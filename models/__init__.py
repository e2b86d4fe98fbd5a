from .database import Base, UTCDateTime, build_engine, build_session_factory, init_db, session_scope
from .item import BookStatus, Format, Genre, Item, ItemType, ShelfStatus
from .shelf import ItemPlacement, Shelf, ShelfColumn, ShelfRow, ShelfSlot
from .user import User, UserSession

__all__ = [
    "Base",
    "UTCDateTime",
    "build_engine",
    "build_session_factory",
    "init_db",
    "session_scope",
    "BookStatus",
    "Format",
    "Genre",
    "Item",
    "ItemType",
    "ShelfStatus",
    "ItemPlacement",
    "Shelf",
    "ShelfColumn",
    "ShelfRow",
    "ShelfSlot",
    "User",
    "UserSession",
]
