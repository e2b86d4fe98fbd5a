from sqlalchemy import Column, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from .database import Base, UTCDateTime


class User(Base):
    """Account created on first OAuth login"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True)
    email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, default="")
    avatar_url = Column(String, nullable=False, default="")
    oauth_provider = Column(String(32), nullable=False)
    oauth_provider_id = Column(String, nullable=False)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)
    last_login_at = Column(UTCDateTime, nullable=False)

    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("oauth_provider", "oauth_provider_id", name="uq_user_oauth"),
    )


class UserSession(Base):
    """Browser session; only the sha256 of the token is stored"""
    __tablename__ = "user_sessions"

    id = Column(Uuid, primary_key=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(UTCDateTime, nullable=False, index=True)
    created_at = Column(UTCDateTime, nullable=False)
    user_agent = Column(String(512), nullable=False, default="")
    ip_address = Column(String(45), nullable=False, default="")

    user = relationship("User", back_populates="sessions")
