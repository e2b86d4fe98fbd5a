"""
Runtime configuration read from environment variables (and .env files)
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_ALLOWED_ORIGINS = "http://localhost:4200,http://localhost:8080"
DEFAULT_DATABASE_URL = "sqlite:///./storage/anthology.db"
SECRETS_DIR = "/run/secrets"


class ConfigError(Exception):
    """Invalid or unreadable configuration"""


@dataclass
class Settings:
    environment: str = "development"
    http_port: int = 8080
    data_store: str = "memory"
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "info"
    allowed_origins: List[str] = field(default_factory=lambda: DEFAULT_ALLOWED_ORIGINS.split(","))
    api_token: str = ""
    google_books_api_key: str = ""
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_url: str = ""
    frontend_url: str = "http://localhost:4200"
    allowed_emails: List[str] = field(default_factory=list)
    allowed_domains: List[str] = field(default_factory=list)
    request_timeout_seconds: float = 60.0

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def use_memory_store(self) -> bool:
        return self.data_store == "memory"

    @property
    def oauth_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret and self.google_redirect_url)

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_token) or self.oauth_enabled


def load_settings() -> Settings:
    """Builds Settings from the environment, raising ConfigError on bad values"""
    environment = _env("APP_ENV", "development")

    port_value = _env("PORT", _env("HTTP_PORT", "8080"))
    try:
        port = int(port_value)
    except ValueError:
        raise ConfigError(f"invalid port {port_value!r}")

    timeout_value = _env("REQUEST_TIMEOUT_SECONDS", "60")
    try:
        timeout = float(timeout_value)
    except ValueError:
        raise ConfigError(f"invalid REQUEST_TIMEOUT_SECONDS {timeout_value!r}")

    data_store = _env("DATA_STORE", "memory").lower()
    if data_store in ("postgres", "sqlite"):
        data_store = "database"
    if data_store not in ("memory", "database"):
        raise ConfigError(f"DATA_STORE must be memory or database, got {data_store!r}")

    settings = Settings(
        environment=environment,
        http_port=port,
        data_store=data_store,
        database_url=_env_or_file("DATABASE_URL", "anthology_database_url") or DEFAULT_DATABASE_URL,
        log_level=_env("LOG_LEVEL", "info").lower(),
        api_token=_env_or_file("API_TOKEN", "anthology_api_token").strip(),
        google_books_api_key=_env_or_file("GOOGLE_BOOKS_API_KEY", "anthology_google_books_api_key").strip(),
        google_client_id=_env("GOOGLE_CLIENT_ID", "").strip(),
        google_client_secret=_env_or_file("GOOGLE_CLIENT_SECRET", "anthology_google_client_secret").strip(),
        google_redirect_url=_env("GOOGLE_REDIRECT_URL", "").strip(),
        frontend_url=_env("FRONTEND_URL", "http://localhost:4200").strip().rstrip("/"),
        allowed_emails=parse_csv(_env("ALLOWED_EMAILS", "")),
        allowed_domains=parse_csv(_env("ALLOWED_DOMAINS", "")),
        request_timeout_seconds=timeout,
    )

    if not settings.is_development and not settings.api_token:
        raise ConfigError(f"API_TOKEN is required when APP_ENV={environment}")

    settings.allowed_origins = sanitize_allowed_origins(
        parse_csv(_env("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS)), environment
    )
    return settings


def parse_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def sanitize_allowed_origins(origins: List[str], environment: str) -> List[str]:
    """Drops duplicates (case-insensitive) and rejects wildcards outside development"""
    is_development = environment.lower() == "development"
    cleaned = []
    seen = set()
    for origin in origins:
        value = origin.strip()
        if not value:
            continue
        if "*" in value and not is_development:
            raise ConfigError(f"ALLOWED_ORIGINS cannot contain wildcard {value!r} when APP_ENV={environment}")
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(value)

    if not cleaned:
        raise ConfigError(f"ALLOWED_ORIGINS must define at least one origin when APP_ENV={environment}")
    return cleaned


def _env(key: str, default: str) -> str:
    value = os.getenv(key)
    if value:
        return value
    return default


def _env_or_file(key: str, secret_name: str, secrets_dir: Optional[str] = None) -> str:
    """Reads KEY, then KEY_FILE, then the default secret mount"""
    value = os.getenv(key)
    if value:
        return value

    file_key = f"{key}_FILE"
    path = os.getenv(file_key)
    if path:
        return _read_secret(path, file_key)

    default_path = os.path.join(secrets_dir or SECRETS_DIR, secret_name)
    return _read_secret(default_path, key)


def _read_secret(path: str, name: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            contents = handle.read()
    except FileNotFoundError:
        return ""
    except OSError as exc:
        raise ConfigError(f"config: reading {name} ({path}): {exc}")

    value = contents.strip()
    if not value:
        raise ConfigError(f"config: {name} ({path}) is empty")
    return value
