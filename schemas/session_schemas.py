from datetime import datetime
from uuid import UUID

from .base import CamelModel, RequestModel


class SessionLoginRequest(RequestModel):
    token: str = ""


class UserResponse(CamelModel):
    id: UUID
    email: str
    name: str = ""
    avatar_url: str = ""
    oauth_provider: str
    oauth_provider_id: str
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime


class SessionResponse(CamelModel):
    id: UUID
    user_id: UUID
    token_hash: str
    expires_at: datetime
    created_at: datetime
    user_agent: str = ""
    ip_address: str = ""
