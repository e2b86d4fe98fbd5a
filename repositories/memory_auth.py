import threading
from typing import Dict, Optional, Tuple
from uuid import UUID

from schemas.session_schemas import SessionResponse, UserResponse


class InMemoryAuthRepository:
    """Users and browser sessions for OAuth logins"""

    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[UUID, UserResponse] = {}
        self._by_provider: Dict[Tuple[str, str], UUID] = {}
        self._sessions: Dict[str, SessionResponse] = {}

    def get_user(self, user_id: UUID) -> Optional[UserResponse]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def get_user_by_provider(self, provider: str, provider_id: str) -> Optional[UserResponse]:
        with self._lock:
            user_id = self._by_provider.get((provider, provider_id))
            if user_id is None:
                return None
            return self._users[user_id].model_copy()

    def save_user(self, user: UserResponse) -> UserResponse:
        with self._lock:
            self._users[user.id] = user.model_copy()
            self._by_provider[(user.oauth_provider, user.oauth_provider_id)] = user.id
            return user.model_copy()

    def create_session(self, session: SessionResponse) -> SessionResponse:
        with self._lock:
            self._sessions[session.token_hash] = session.model_copy()
            return session.model_copy()

    def get_session(self, token_hash: str) -> Optional[SessionResponse]:
        with self._lock:
            session = self._sessions.get(token_hash)
            return session.model_copy() if session else None

    def delete_session(self, token_hash: str) -> None:
        with self._lock:
            self._sessions.pop(token_hash, None)
