from .filters import ListOptions
from .memory_auth import InMemoryAuthRepository
from .memory_items import InMemoryItemRepository
from .memory_shelves import InMemoryShelfRepository
from .sql_auth import SqlAuthRepository
from .sql_items import SqlItemRepository
from .sql_shelves import SqlShelfRepository

__all__ = [
    "ListOptions",
    "InMemoryAuthRepository",
    "InMemoryItemRepository",
    "InMemoryShelfRepository",
    "SqlAuthRepository",
    "SqlItemRepository",
    "SqlShelfRepository",
]
