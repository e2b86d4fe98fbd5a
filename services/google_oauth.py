"""
Google OAuth 2.0 sign-in: consent URL, code exchange and ID-token checks
"""
import base64
import binascii
import json
import logging
import secrets
from typing import Callable, List, Optional
from urllib.parse import unquote, urlencode, urlsplit

import httpx
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
SCOPES = ["openid", "email", "profile"]


class OAuthExchangeError(Exception):
    """The authorization code could not be turned into verified claims"""


class GoogleAuthenticator:
    def __init__(self, client_id: str, client_secret: str, redirect_url: str,
                 allowed_domains: Optional[List[str]] = None,
                 allowed_emails: Optional[List[str]] = None,
                 transport: Optional[httpx.BaseTransport] = None,
                 verifier: Optional[Callable[[str], dict]] = None,
                 timeout: float = 10.0):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_url = redirect_url
        self.allowed_domains = [domain.lower() for domain in allowed_domains or []]
        self.allowed_emails = [email.lower() for email in allowed_emails or []]
        self._client = httpx.Client(timeout=timeout, transport=transport)
        self._verifier = verifier or self._verify_id_token

    def auth_url(self, state: str) -> str:
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "state": state,
            "access_type": "offline",
            "prompt": "select_account",
        })
        return f"{GOOGLE_AUTH_URL}?{query}"

    def exchange(self, code: str) -> dict:
        """Trades the code for tokens and returns the verified ID-token claims"""
        try:
            response = self._client.post(GOOGLE_TOKEN_URL, data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_url,
                "grant_type": "authorization_code",
            })
        except httpx.HTTPError as exc:
            raise OAuthExchangeError(f"token request failed: {exc}")
        if response.status_code != 200:
            raise OAuthExchangeError(f"token endpoint returned {response.status_code}")

        raw_id_token = response.json().get("id_token")
        if not raw_id_token:
            raise OAuthExchangeError("no id_token in token response")

        try:
            claims = self._verifier(raw_id_token)
        except ValueError as exc:
            raise OAuthExchangeError(f"failed to verify ID token: {exc}")
        if not claims.get("sub"):
            raise OAuthExchangeError("ID token has no subject")
        return claims

    def is_email_allowed(self, email: str) -> bool:
        """Explicit email match or domain match; no allowlist admits everyone"""
        if not self.has_allowlist():
            return True
        email = email.lower()
        if email in self.allowed_emails:
            return True
        local, at, domain = email.rpartition("@")
        return bool(local and at) and domain in self.allowed_domains

    def has_allowlist(self) -> bool:
        return bool(self.allowed_emails or self.allowed_domains)

    def _verify_id_token(self, raw: str) -> dict:
        return id_token.verify_oauth2_token(raw, google_requests.Request(), self.client_id)


def generate_state() -> str:
    return base64.urlsafe_b64encode(secrets.token_bytes(32)).decode("ascii").rstrip("=")


def encode_state(state: str, redirect_to: str = "") -> str:
    """State parameter sent to Google: unpadded base64url JSON {s, r}"""
    payload = {"s": state}
    if redirect_to and is_valid_redirect_path(redirect_to):
        payload["r"] = redirect_to
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_state(value: str) -> dict:
    """Raises ValueError when the state is not a base64url JSON object"""
    padded = value + "=" * (-len(value) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"invalid state: {exc}")
    if not isinstance(payload, dict) or not isinstance(payload.get("s", ""), str):
        raise ValueError("invalid state payload")
    return payload


def is_valid_redirect_path(path: str) -> bool:
    """Relative path starting with a single '/', also after percent-decoding"""
    if not path:
        return False
    decoded = unquote(path)
    if not decoded.startswith("/") or decoded.startswith("//") or "\\" in decoded:
        return False
    parsed = urlsplit(decoded)
    return not parsed.scheme and not parsed.netloc
