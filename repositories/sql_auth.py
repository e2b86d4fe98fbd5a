from typing import Optional
from uuid import UUID

from sqlalchemy.orm import sessionmaker

from models.database import session_scope
from models.user import User, UserSession
from schemas.session_schemas import SessionResponse, UserResponse


class SqlAuthRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_user(self, user_id: UUID) -> Optional[UserResponse]:
        with session_scope(self._session_factory) as db:
            user = db.query(User).filter(User.id == user_id).first()
            return UserResponse.model_validate(user) if user else None

    def get_user_by_provider(self, provider: str, provider_id: str) -> Optional[UserResponse]:
        with session_scope(self._session_factory) as db:
            user = (
                db.query(User)
                .filter(User.oauth_provider == provider, User.oauth_provider_id == provider_id)
                .first()
            )
            return UserResponse.model_validate(user) if user else None

    def save_user(self, user: UserResponse) -> UserResponse:
        """Inserts or updates the user row"""
        with session_scope(self._session_factory) as db:
            row = db.query(User).filter(User.id == user.id).first()
            if row is None:
                row = User(id=user.id)
                db.add(row)
            for key, value in user.model_dump(exclude={"id"}).items():
                setattr(row, key, value)
        return user.model_copy()

    def create_session(self, session: SessionResponse) -> SessionResponse:
        with session_scope(self._session_factory) as db:
            db.add(UserSession(**session.model_dump()))
        return session.model_copy()

    def get_session(self, token_hash: str) -> Optional[SessionResponse]:
        with session_scope(self._session_factory) as db:
            row = db.query(UserSession).filter(UserSession.token_hash == token_hash).first()
            return SessionResponse.model_validate(row) if row else None

    def delete_session(self, token_hash: str) -> None:
        with session_scope(self._session_factory) as db:
            db.query(UserSession).filter(UserSession.token_hash == token_hash).delete()
