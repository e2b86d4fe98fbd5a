"""
FastAPI dependencies: service lookup on app.state and request authentication
"""
import hmac
import logging
from uuid import UUID

from fastapi import HTTPException, Request

from services.auth_service import hash_token
from services.exceptions import ValidationError

logger = logging.getLogger(__name__)

SESSION_COOKIE = "anthology_session"
OAUTH_STATE_COOKIE = "anthology_oauth_state"

# owner of every record when the API token (or no auth at all) is used
LOCAL_OWNER_ID = UUID("00000000-0000-0000-0000-000000000001")


def get_settings(request: Request):
    return request.app.state.settings


def get_item_service(request: Request):
    return request.app.state.item_service


def get_shelf_service(request: Request):
    return request.app.state.shelf_service


def get_catalog_service(request: Request):
    return request.app.state.catalog_service


def get_csv_importer(request: Request):
    return request.app.state.csv_importer


def get_auth_service(request: Request):
    return request.app.state.auth_service


def get_login_tracker(request: Request):
    return request.app.state.login_tracker


def get_google_authenticator(request: Request):
    google = request.app.state.google_authenticator
    if google is None:
        raise HTTPException(status_code=404, detail="oauth is not configured")
    return google


def get_current_owner(request: Request) -> UUID:
    """
    Resolves the owner of the request: API token (bearer header or token
    cookie) maps to the local owner, an OAuth session cookie to its user.
    """
    owner_id = resolve_owner(request)
    if owner_id is None:
        raise HTTPException(
            status_code=401,
            detail="authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return owner_id


def resolve_owner(request: Request):
    settings = request.app.state.settings
    if not settings.auth_enabled:
        return LOCAL_OWNER_ID

    if settings.api_token:
        header = request.headers.get("Authorization", "")
        scheme, _, credentials = header.partition(" ")
        if scheme.lower() == "bearer" and credentials and constant_time_equals(credentials.strip(), settings.api_token):
            return LOCAL_OWNER_ID

    cookie = request.cookies.get(SESSION_COOKIE, "")
    if not cookie:
        return None
    if settings.api_token and constant_time_equals(cookie, session_cookie_value(settings.api_token)):
        return LOCAL_OWNER_ID

    auth_service = request.app.state.auth_service
    if auth_service is not None and settings.oauth_enabled:
        user = auth_service.validate_session(cookie)
        if user is not None:
            return user.id
    return None


def session_cookie_value(api_token: str) -> str:
    """Value of the token-login cookie; the raw token is never stored in it"""
    return hash_token(api_token)


def constant_time_equals(left: str, right: str) -> bool:
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


def parse_uuid(value: str, message: str = "invalid id") -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise ValidationError(message)
