from pydantic_settings import BaseSettings
from typing import List, Union, Optional
from pydantic import field_validator


class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None  # Full URL override (e.g. sqlite:///./postdesk.db)
    POSTGRES_USER: str = "postdesk"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "postdesk"
    DB_CONNECT_TIMEOUT: int = 10  # seconds, enforced by the driver

    @property
    def database_url(self) -> str:
        """Explicit DATABASE_URL, or a PostgreSQL URL built from components."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Application
    SECRET_KEY: str
    DEBUG: bool = False
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            # Split by comma or keep as single item
            return [origin.strip() for origin in v.split(",")]
        return v

    # Sessions
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day
    LOGIN_RATE_LIMIT: str = "10/minute"

    # Cookie Security
    COOKIE_SECURE: bool = True  # Set to False for local development without HTTPS
    COOKIE_SAMESITE: str = "lax"  # Options: "strict", "lax", "none"
    COOKIE_DOMAIN: Optional[str] = None

    # Security Headers
    ENABLE_HSTS: bool = True  # HTTP Strict Transport Security
    HSTS_MAX_AGE: int = 31536000  # 1 year in seconds
    HSTS_INCLUDE_SUBDOMAINS: bool = True

    # Posts listing
    MAX_PAGE_SIZE: int = 50
    POSTS_RATE_LIMIT: int = 100  # requests per window per client address
    POSTS_RATE_WINDOW_SECONDS: int = 60
    RATE_LIMIT_MAX_CLIENTS: int = 10000  # tracked addresses before LRU eviction

    # Uploads
    UPLOAD_ROOT: str = "./uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB per image
    ALLOWED_IMAGE_TYPES: List[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    ]

    @property
    def is_production(self) -> bool:
        """Secure cookies and no debug mode."""
        return self.COOKIE_SECURE and not self.DEBUG

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env


settings = Settings()
