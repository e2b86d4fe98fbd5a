"""
Google sign-in routes
"""
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from dependencies import (
    OAUTH_STATE_COOKIE,
    client_ip,
    constant_time_equals,
    get_auth_service,
    get_google_authenticator,
    get_settings,
)
from routers.session import set_session_cookie
from services.google_oauth import (
    OAuthExchangeError,
    decode_state,
    encode_state,
    generate_state,
    is_valid_redirect_path,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

STATE_COOKIE_PATH = "/api/auth"
STATE_COOKIE_TTL_SECONDS = 10 * 60


@router.get("/google")
def initiate_google(
    redirect_to: str = Query("", alias="redirectTo"),
    settings=Depends(get_settings),
    google=Depends(get_google_authenticator),
):
    """Redirects to the Google consent screen"""
    state = generate_state()
    response = RedirectResponse(google.auth_url(encode_state(state, redirect_to)), status_code=307)
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        max_age=STATE_COOKIE_TTL_SECONDS,
        path=STATE_COOKIE_PATH,
        httponly=True,
        secure=not settings.is_development,
        samesite="lax",
    )
    return response


@router.get("/google/callback")
def callback_google(
    request: Request,
    settings=Depends(get_settings),
    google=Depends(get_google_authenticator),
    auth_service=Depends(get_auth_service),
):
    """
    Completes the sign-in: checks the state cookie, exchanges the code,
    applies the allowlist, then opens a session and returns to the frontend.
    """
    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not expected_state:
        logger.warning("OAuth callback without state cookie")
        return _login_error(settings, "invalid_request", "Session expired. Please try again.")

    try:
        payload = decode_state(request.query_params.get("state", ""))
    except ValueError:
        logger.warning("OAuth callback with malformed state")
        return _login_error(settings, "invalid_request", "Invalid state. Please try again.")

    redirect_to = "/"
    if payload.get("r") and is_valid_redirect_path(payload["r"]):
        redirect_to = payload["r"]

    if not constant_time_equals(payload.get("s", ""), expected_state):
        logger.warning("OAuth callback state mismatch")
        return _login_error(settings, "invalid_request", "Invalid state. Please try again.")

    provider_error = request.query_params.get("error")
    if provider_error:
        logger.warning(f"OAuth provider error: {provider_error}")
        return _login_error(settings, provider_error, request.query_params.get("error_description", ""))

    code = request.query_params.get("code")
    if not code:
        return _login_error(settings, "invalid_request", "Missing authorization code.")

    try:
        claims = google.exchange(code)
    except OAuthExchangeError as exc:
        logger.error(f"OAuth code exchange failed: {exc}")
        return _login_error(settings, "exchange_error", "Failed to complete authentication.")

    email = claims.get("email", "")
    if not claims.get("email_verified"):
        logger.warning(f"OAuth login with unverified email {email}")
        return _login_error(settings, "email_not_verified", "Please verify your Google email address.")

    if not google.is_email_allowed(email):
        logger.warning(f"OAuth login rejected for {email}")
        return _login_error(settings, "access_denied",
                            "Your account is not authorized to access this application.")

    try:
        user = auth_service.create_or_update_user(claims)
    except Exception:
        logger.exception("OAuth user creation failed")
        return _login_error(settings, "internal_error", "Failed to create user account.")

    try:
        token, _ = auth_service.create_session(user.id, request.headers.get("User-Agent", ""), client_ip(request))
    except Exception:
        logger.exception("OAuth session creation failed")
        return _login_error(settings, "internal_error", "Failed to create session.")

    logger.info(f"OAuth login successful for user {user.id}")
    response = RedirectResponse(settings.frontend_url + redirect_to, status_code=307)
    _clear_state_cookie(response, settings)
    set_session_cookie(response, token, not settings.is_development)
    return response


def _login_error(settings, code: str, message: str) -> RedirectResponse:
    target = f"{settings.frontend_url}/login?error={quote(code, safe='')}"
    if message:
        target += f"&message={quote(message, safe='')}"
    response = RedirectResponse(target, status_code=307)
    _clear_state_cookie(response, settings)
    return response


def _clear_state_cookie(response: RedirectResponse, settings) -> None:
    response.delete_cookie(OAUTH_STATE_COOKIE, path=STATE_COOKIE_PATH, httponly=True,
                           secure=not settings.is_development)
