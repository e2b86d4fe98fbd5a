"""
Browser session routes for API-token logins
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from dependencies import (
    SESSION_COOKIE,
    client_ip,
    constant_time_equals,
    get_auth_service,
    get_login_tracker,
    get_settings,
    resolve_owner,
    session_cookie_value,
)
from schemas.session_schemas import SessionLoginRequest
from services.auth_service import SESSION_TTL
from services.exceptions import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])


def set_session_cookie(response: Response, value: str, secure: bool) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        value,
        max_age=int(SESSION_TTL.total_seconds()),
        path="/",
        httponly=True,
        secure=secure,
        samesite="lax",
    )


@router.post("", status_code=204)
def login(
    payload: SessionLoginRequest,
    request: Request,
    settings=Depends(get_settings),
    tracker=Depends(get_login_tracker),
):
    if not settings.api_token:
        raise ValidationError("API token authentication is disabled")

    ip = client_ip(request)
    if tracker.is_blocked(ip):
        logger.warning(f"Login rate limited for {ip}")
        raise HTTPException(status_code=429, detail="too many login attempts, try again later")

    token = (payload.token or "").strip()
    if not token or not constant_time_equals(token, settings.api_token):
        tracker.record_failure(ip)
        logger.warning(f"Login failed for {ip}: invalid token")
        raise HTTPException(status_code=401, detail="invalid token")

    tracker.reset(ip)
    logger.info(f"Login successful for {ip}")
    response = Response(status_code=204)
    set_session_cookie(response, session_cookie_value(settings.api_token), not settings.is_development)
    return response


@router.get("", status_code=204)
def session_status(request: Request):
    """204 when the request is authenticated (or auth is disabled), else 401"""
    if resolve_owner(request) is None:
        raise HTTPException(status_code=401, detail="authentication required",
                            headers={"WWW-Authenticate": "Bearer"})
    return Response(status_code=204)


@router.delete("", status_code=204)
def logout(
    request: Request,
    settings=Depends(get_settings),
    auth_service=Depends(get_auth_service),
):
    cookie = request.cookies.get(SESSION_COOKIE, "")
    if cookie and auth_service is not None:
        auth_service.delete_session(cookie)

    response = Response(status_code=204)
    response.delete_cookie(SESSION_COOKIE, path="/", httponly=True,
                           secure=not settings.is_development, samesite="lax")
    return response
