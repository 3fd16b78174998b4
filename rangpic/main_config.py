"""Application configuration with environment variables and K8s secrets support."""
import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# LOCAL DEBUG OVERRIDE - Change this to test other environments locally
# =============================================================================
LOCAL_ENV_OVERRIDE: "Environment | None" = None  # e.g., Environment.DEV


# =============================================================================
# K8s Secrets Config
# =============================================================================
# Secret path: /etc/{SECRETS_FOLDER_NAME}/{PROJECT_KEY}_{secret_name}
# e.g., /etc/secrets/rangpic_database-password
SECRETS_FOLDER_NAME: str = os.getenv("SECRETS_FOLDER_NAME", "secrets")
PROJECT_KEY: str = os.getenv("PROJECT_KEY", "rangpic")
SECRETS_BASE_PATH: str = f"/etc/{SECRETS_FOLDER_NAME}" if SECRETS_FOLDER_NAME else ""


class Environment(str, Enum):
    LOCAL = "local"
    DEV = "dev"
    TEST = "test"
    PROD = "prod"


def read_secret_from_file(secret_name: str, base_path: str | None) -> str | None:
    """Read secret from K8s mounted file."""
    if not base_path:
        return None
    secret_path = Path(base_path) / secret_name
    if not secret_path.is_file():
        return None
    try:
        return secret_path.read_text().strip()
    except OSError:
        return None


def get_k8s_secret_name(secret_name: str) -> str:
    """Get K8s secret filename: {PROJECT_KEY}_{secret_name}"""
    return f"{PROJECT_KEY}_{secret_name}"


def get_secret(env_var: str, secret_file_name: str | None = None, default: str | None = None) -> str | None:
    """Get secret: K8s file > env var > {env_var}_FILE > default."""
    if secret_file_name and SECRETS_BASE_PATH:
        k8s_name = get_k8s_secret_name(secret_file_name)
        if value := read_secret_from_file(k8s_name, SECRETS_BASE_PATH):
            return value
    if value := os.getenv(env_var):
        return value
    if file_path := os.getenv(f"{env_var}_FILE"):
        if value := read_secret_from_file(Path(file_path).name, str(Path(file_path).parent)):
            return value
    return default


def get_env_file(override: Environment | None = None) -> str:
    """Get .env file path. Override only works when ENV=local."""
    env = os.getenv("ENV", Environment.LOCAL.value)
    if env == Environment.LOCAL.value and override:
        env = override.value
    return f".env_{env}"


ENV_FILE = get_env_file(LOCAL_ENV_OVERRIDE)

_ASYNC_DRIVER_PREFIXES = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}


# =============================================================================
# Config Classes
# =============================================================================

class DatabaseCredentials(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="DATABASE_", extra="ignore")

    host: str = "localhost"
    port: int = 5432
    user: str | None = Field(default=None)
    password: SecretStr | None = Field(default=None)
    db_name: str = "rangpic"

    @model_validator(mode="before")
    @classmethod
    def _load_secrets(cls, data: dict[str, Any]) -> dict[str, Any]:
        if not data.get("user"):
            data["user"] = get_secret("DATABASE_USER", "database-user")
        if not data.get("password"):
            data["password"] = get_secret("DATABASE_PASSWORD", "database-password")
        return data


class DatabaseConfig(BaseSettings):
    """Catalog database connection and pooling settings.

    ``DATABASE_URL`` wins when set; otherwise the URL is assembled from
    ``DatabaseCredentials``.
    """
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="DATABASE_", extra="ignore")

    url: SecretStr | None = Field(default=None)
    driver: str = "postgresql+asyncpg"
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 15
    pool_recycle: int = 900
    pool_pre_ping: bool = True
    echo: bool = False

    @model_validator(mode="before")
    @classmethod
    def _load_secrets(cls, data: dict[str, Any]) -> dict[str, Any]:
        if not data.get("url"):
            data["url"] = get_secret("DATABASE_URL", "database-url")
        return data

    @property
    def credentials(self) -> DatabaseCredentials:
        return DatabaseCredentials()

    @property
    def dsn(self) -> str:
        """SQLAlchemy async URL for the catalog."""
        if self.url:
            raw = self.url.get_secret_value()
            for prefix, replacement in _ASYNC_DRIVER_PREFIXES.items():
                if raw.startswith(prefix):
                    return replacement + raw[len(prefix):]
            return raw
        creds = self.credentials
        auth = ""
        if creds.user:
            password = creds.password.get_secret_value() if creds.password else ""
            auth = f"{creds.user}:{quote_plus(password)}@"
        return f"{self.driver}://{auth}{creds.host}:{creds.port}/{creds.db_name}"


class LocalStoreConfig(BaseSettings):
    """Directory of downloaded images served under the local marker."""
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="LOCAL_STORE_", extra="ignore")

    root: Path = Path("/app/local_images")
    url_prefix: str = "/local/"
    default_content_type: str = "application/octet-stream"
    chunk_size: int = Field(default=64 * 1024, gt=0)

    @field_validator("url_prefix")
    @classmethod
    def _trailing_slash(cls, v: str) -> str:
        if not v.startswith("/"):
            v = "/" + v
        return v if v.endswith("/") else v + "/"


class OriginConfig(BaseSettings):
    """Outbound fetches to remote image hosts."""
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="ORIGIN_", extra="ignore")

    timeout: float = Field(default=15.0, gt=0)
    follow_redirects: bool = False
    max_body_bytes: int = Field(default=50 * 1024 * 1024, gt=0)
    http2: bool = True
    verify_ssl: bool = True
    max_connections: int = 100
    max_keepalive: int = 20
    keepalive_expiry: float = 30.0
    user_agent: str = "rangpic/0.1"


class CatalogConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="CATALOG_", extra="ignore")

    seed_file: Path = Path("image_urls.txt")
    import_on_startup: bool = True


class CORSConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="CORS_", extra="ignore")

    allow_origins: str = "*"
    allow_credentials: bool = False
    allow_methods: str = "GET"
    allow_headers: str = "*"

    @property
    def origins_list(self) -> list[str]:
        return [o.strip() for o in self.allow_origins.split(",")]

    @property
    def methods_list(self) -> list[str]:
        return ["*"] if self.allow_methods == "*" else [m.strip() for m in self.allow_methods.split(",")]

    @property
    def headers_list(self) -> list[str]:
        return ["*"] if self.allow_headers == "*" else [h.strip() for h in self.allow_headers.split(",")]


class LoggingConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="LOG_", extra="ignore")

    level: str = "INFO"
    format: str = "console"
    level_sqlalchemy: str = "WARNING"
    level_httpx: str = "WARNING"
    level_uvicorn_access: str = "INFO"


class FastAPIConfig(BaseSettings):
    """FastAPI application configuration."""
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="FASTAPI_", extra="ignore")

    title: str = "Rangpic"
    description: str = "Random image catalog and delivery"
    version: str = "0.1.0"
    docs_url: str | None = "/docs"
    redoc_url: str | None = "/redoc"
    openapi_url: str | None = "/openapi.json"
    root_path: str = ""
    debug: bool = False

    @field_validator("docs_url", "redoc_url", "openapi_url")
    @classmethod
    def _disable_docs(cls, v: str | None) -> str | None:
        # Docs URLs can be disabled by setting to empty string in env
        return v if v else None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, extra="ignore")

    env: Environment = Field(default=Environment.LOCAL)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=17777)
    reload: bool = Field(default=False)
    workers: int = Field(default=1)

    @field_validator("reload")
    @classmethod
    def _no_reload_in_prod(cls, v: bool, info) -> bool:
        if info.data.get("env") == Environment.PROD and v:
            raise ValueError(f"{info.field_name} cannot be True in production")
        return v

    @property
    def is_production(self) -> bool:
        return self.env == Environment.PROD


# =============================================================================
# Lazy Loaders (cached)
# =============================================================================

@lru_cache
def get_settings() -> Settings:
    return Settings()

@lru_cache
def get_database_config() -> DatabaseConfig:
    return DatabaseConfig()

@lru_cache
def get_local_store_config() -> LocalStoreConfig:
    return LocalStoreConfig()

@lru_cache
def get_origin_config() -> OriginConfig:
    return OriginConfig()

@lru_cache
def get_catalog_config() -> CatalogConfig:
    return CatalogConfig()

@lru_cache
def get_cors_config() -> CORSConfig:
    return CORSConfig()

@lru_cache
def get_logging_config() -> LoggingConfig:
    return LoggingConfig()

@lru_cache
def get_fastapi_config() -> FastAPIConfig:
    return FastAPIConfig()


# =============================================================================
# Global Instances
# =============================================================================

settings = get_settings()
database_config = get_database_config()
local_store_config = get_local_store_config()
origin_config = get_origin_config()
catalog_config = get_catalog_config()
cors_config = get_cors_config()
logging_config = get_logging_config()
fastapi_config = get_fastapi_config()
