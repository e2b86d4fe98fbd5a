"""
Domain errors raised by the services; main.py maps them to HTTP responses
"""


class AnthologyError(Exception):
    """Base error carrying the HTTP status and the client-facing message"""
    status_code = 500
    default_message = "unexpected error"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AnthologyError):
    status_code = 400
    default_message = "invalid request"


class NotFoundError(AnthologyError):
    status_code = 404
    default_message = "not found"


class ItemNotFoundError(NotFoundError):
    default_message = "item not found"


class ShelfNotFoundError(NotFoundError):
    default_message = "shelf not found"


class SlotNotFoundError(NotFoundError):
    default_message = "slot not found"


class SeriesNotFoundError(NotFoundError):
    default_message = "series not found"


class InvalidQueryError(AnthologyError):
    status_code = 400
    default_message = "query must be at least 3 characters"


class UnsupportedCategoryError(AnthologyError):
    status_code = 400
    default_message = "metadata lookups for this category are not available yet"


class CatalogNotFoundError(AnthologyError):
    status_code = 404
    default_message = "We couldn't find any metadata for that query."


class CatalogLookupError(AnthologyError):
    status_code = 502
    default_message = "metadata lookup failed. Try again later."


class InvalidCSVError(AnthologyError):
    status_code = 400
    default_message = "invalid csv upload"
