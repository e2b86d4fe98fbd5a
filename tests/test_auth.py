import base64
import json
import uuid
from datetime import timedelta
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from repositories import InMemoryAuthRepository
from services.auth_service import AuthService, hash_token
from services.google_oauth import (
    GoogleAuthenticator,
    OAuthExchangeError,
    decode_state,
    encode_state,
    generate_state,
    is_valid_redirect_path,
)
from services.login_limiter import LoginAttemptTracker

CLAIMS = {
    "sub": "google-123",
    "email": "reader@example.com",
    "email_verified": True,
    "name": "Avid Reader",
    "picture": "https://example.com/me.png",
}


@pytest.fixture
def auth_repository():
    return InMemoryAuthRepository()


@pytest.fixture
def auth_service(auth_repository):
    return AuthService(auth_repository)


def test_first_login_creates_user_and_later_logins_update_it(auth_service):
    user = auth_service.create_or_update_user(CLAIMS)
    assert user.email == "reader@example.com"
    assert user.oauth_provider == "google"

    again = auth_service.create_or_update_user(dict(CLAIMS, name="Renamed", picture=""))
    assert again.id == user.id
    assert again.name == "Renamed"
    assert again.avatar_url == ""
    assert again.last_login_at >= user.last_login_at


def test_session_lifecycle(auth_service, auth_repository):
    user = auth_service.create_or_update_user(CLAIMS)
    token, session = auth_service.create_session(user.id, "Mozilla/5.0 " + "x" * 600, "203.0.113.9")

    assert session.token_hash == hash_token(token)
    assert token not in session.token_hash
    assert len(session.user_agent) == 512
    assert session.expires_at - session.created_at == timedelta(hours=12)
    assert auth_service.validate_session(token).id == user.id
    assert auth_service.validate_session("bogus") is None
    assert auth_service.validate_session("") is None

    auth_service.delete_session(token)
    assert auth_service.validate_session(token) is None


def test_expired_session_is_deleted(auth_repository):
    service = AuthService(auth_repository, session_ttl=timedelta(seconds=-1))
    user = service.create_or_update_user(CLAIMS)
    token, session = service.create_session(user.id)

    assert service.validate_session(token) is None
    assert auth_repository.get_session(session.token_hash) is None


def test_login_tracker_blocks_after_five_failures():
    now = [1000.0]
    tracker = LoginAttemptTracker(clock=lambda: now[0])

    for _ in range(4):
        tracker.record_failure("198.51.100.1")
    assert not tracker.is_blocked("198.51.100.1")

    tracker.record_failure("198.51.100.1")
    assert tracker.is_blocked("198.51.100.1")
    assert not tracker.is_blocked("198.51.100.2")

    now[0] += 15 * 60 + 1
    assert not tracker.is_blocked("198.51.100.1")


def test_login_tracker_reset():
    tracker = LoginAttemptTracker(max_attempts=2)
    tracker.record_failure("ip")
    tracker.record_failure("ip")
    assert tracker.is_blocked("ip")

    tracker.reset("ip")
    assert not tracker.is_blocked("ip")


@pytest.mark.parametrize("path, valid", [
    ("/shelves", True),
    ("/items?letter=A", True),
    ("", False),
    ("//evil.example.com", False),
    ("/%2F%2Fevil.example.com", False),
    ("https://evil.example.com", False),
    ("shelves", False),
    ("/\\evil.example.com", False),
])
def test_redirect_path_validation(path, valid):
    assert is_valid_redirect_path(path) is valid


def test_state_round_trip_drops_unsafe_redirect():
    state = generate_state()
    assert decode_state(encode_state(state, "/shelves")) == {"s": state, "r": "/shelves"}
    assert decode_state(encode_state(state, "//evil.example.com")) == {"s": state}

    with pytest.raises(ValueError):
        decode_state("%%%")
    with pytest.raises(ValueError):
        decode_state(base64.urlsafe_b64encode(b"[1]").decode())


def google(handler=None, verifier=None, **allowlists):
    return GoogleAuthenticator(
        "client-id", "client-secret", "http://localhost:8080/api/auth/google/callback",
        transport=httpx.MockTransport(handler or (lambda request: httpx.Response(500))),
        verifier=verifier,
        **allowlists,
    )


def test_auth_url_parameters():
    url = urlsplit(google().auth_url("abc"))
    params = parse_qs(url.query)

    assert url.netloc == "accounts.google.com"
    assert params["client_id"] == ["client-id"]
    assert params["state"] == ["abc"]
    assert params["scope"] == ["openid email profile"]
    assert params["access_type"] == ["offline"]
    assert params["prompt"] == ["select_account"]
    assert params["response_type"] == ["code"]


def test_exchange_returns_verified_claims():
    def handler(request):
        form = parse_qs(request.content.decode())
        assert form["code"] == ["auth-code"]
        assert form["grant_type"] == ["authorization_code"]
        return httpx.Response(200, json={"access_token": "a", "id_token": "raw-id-token"})

    verified = []

    def verifier(raw):
        verified.append(raw)
        return dict(CLAIMS)

    claims = google(handler, verifier).exchange("auth-code")

    assert verified == ["raw-id-token"]
    assert claims["sub"] == "google-123"


@pytest.mark.parametrize("handler, verifier", [
    (lambda request: httpx.Response(400, json={"error": "invalid_grant"}), None),
    (lambda request: httpx.Response(200, json={"access_token": "a"}), None),
    (lambda request: httpx.Response(200, json={"id_token": "raw"}), lambda raw: {}),
])
def test_exchange_failures(handler, verifier):
    with pytest.raises(OAuthExchangeError):
        google(handler, verifier).exchange("auth-code")


def test_exchange_rejects_invalid_id_token():
    def verifier(raw):
        raise ValueError("Token expired")

    handler = lambda request: httpx.Response(200, content=json.dumps({"id_token": "raw"}))  # noqa: E731
    with pytest.raises(OAuthExchangeError, match="Token expired"):
        google(handler, verifier).exchange("auth-code")


def test_email_allowlists():
    assert google().is_email_allowed("anyone@example.com")

    restricted = google(allowed_emails=["Owner@Example.com"], allowed_domains=["family.org"])
    assert restricted.is_email_allowed("owner@example.com")
    assert restricted.is_email_allowed("kid@FAMILY.org")
    assert not restricted.is_email_allowed("stranger@example.com")
    assert not restricted.is_email_allowed("family.org")


def test_hash_token_is_sha256_hex():
    assert hash_token("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert len(hash_token(str(uuid.uuid4()))) == 64
