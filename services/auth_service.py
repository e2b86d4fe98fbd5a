"""
OAuth users and browser sessions
"""
import hashlib
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from schemas.session_schemas import SessionResponse, UserResponse

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(hours=12)
GOOGLE_PROVIDER = "google"


def hash_token(token: str) -> str:
    """sha256 hex digest; session tokens are only stored hashed"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AuthService:
    def __init__(self, repository, session_ttl: timedelta = SESSION_TTL):
        self.repository = repository
        self.session_ttl = session_ttl

    def create_or_update_user(self, claims: dict) -> UserResponse:
        """Finds the user by Google subject, refreshing name and picture, or creates it"""
        now = datetime.now(timezone.utc)
        existing = self.repository.get_user_by_provider(GOOGLE_PROVIDER, claims["sub"])
        if existing is not None:
            user = existing.model_copy(update={
                "name": claims.get("name", ""),
                "avatar_url": claims.get("picture", ""),
                "updated_at": now,
                "last_login_at": now,
            })
            return self.repository.save_user(user)

        user = UserResponse(
            id=uuid.uuid4(),
            email=claims.get("email", ""),
            name=claims.get("name", ""),
            avatar_url=claims.get("picture", ""),
            oauth_provider=GOOGLE_PROVIDER,
            oauth_provider_id=claims["sub"],
            created_at=now,
            updated_at=now,
            last_login_at=now,
        )
        logger.info(f"Created user {user.id} for {user.email}")
        return self.repository.save_user(user)

    def create_session(self, user_id: uuid.UUID, user_agent: str = "", ip_address: str = "") -> Tuple[str, SessionResponse]:
        """Returns the raw token (for the cookie) and the stored session"""
        token = secrets.token_urlsafe(32)
        now = datetime.now(timezone.utc)
        session = SessionResponse(
            id=uuid.uuid4(),
            user_id=user_id,
            token_hash=hash_token(token),
            expires_at=now + self.session_ttl,
            created_at=now,
            user_agent=(user_agent or "")[:512],
            ip_address=(ip_address or "")[:45],
        )
        return token, self.repository.create_session(session)

    def validate_session(self, token: str) -> Optional[UserResponse]:
        if not token:
            return None
        token_hash = hash_token(token)
        session = self.repository.get_session(token_hash)
        if session is None:
            return None
        if datetime.now(timezone.utc) >= session.expires_at:
            self.repository.delete_session(token_hash)
            return None
        return self.repository.get_user(session.user_id)

    def delete_session(self, token: str) -> None:
        if token:
            self.repository.delete_session(hash_token(token))
