from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENVIRONMENT: str = Field(default="development")
    APP_VERSION: str = Field(default="0.3.0")
    LOG_LEVEL: str = Field(default="INFO")

    # MongoDB
    MONGO_URL: str = Field(...)
    MONGO_DB: str = Field(...)
    # Multi-document transactions need a replica set; disable on a standalone server
    MONGO_TRANSACTIONS: bool = Field(default=True)

    # Rate limits ("<count> per <period>", parsed by the limits package)
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    RATE_LIMIT_AUTH: str = Field(default="20 per 15 minutes")
    RATE_LIMIT_EMAIL: str = Field(default="5 per hour")
    RATE_LIMIT_SENSITIVE: str = Field(default="5 per hour")
    RATE_LIMIT_UPLOAD: str = Field(default="10 per hour")
    RATE_LIMIT_FOLLOW: str = Field(default="20 per 10 minutes")
    RATE_LIMIT_GAMES: str = Field(default="100 per 5 minutes")
    RATE_LIMIT_DATING: str = Field(default="100 per 15 minutes")
    RATE_LIMIT_CHATBOT: str = Field(default="20 per minute")

    # JWT
    JWT_SECRET: str = Field(...)
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24 * 7)

    # Mail
    MAIL_ENABLED: bool = Field(default=False)
    MAIL_USERNAME: Optional[str] = Field(default=None)
    MAIL_PASSWORD: Optional[str] = Field(default=None)
    MAIL_FROM: str = Field(default="no-reply@jevahapp.com")
    MAIL_PORT: int = Field(default=587)
    MAIL_SERVER: str = Field(default="smtp.gmail.com")

    # Object storage (Cloudflare R2 or any S3-compatible bucket)
    STORAGE_ENDPOINT_URL: Optional[str] = Field(default=None)
    STORAGE_ACCESS_KEY_ID: Optional[str] = Field(default=None)
    STORAGE_SECRET_ACCESS_KEY: Optional[str] = Field(default=None)
    STORAGE_BUCKET: Optional[str] = Field(default=None)
    STORAGE_REGION: str = Field(default="auto")
    STORAGE_URL_EXPIRES: int = Field(default=3600)
    LOCAL_UPLOAD_DIR: str = Field(default="static/upload")

    # Gemini
    GEMINI_API_KEY: Optional[str] = Field(default=None)
    GEMINI_MODEL: str = Field(default="gemini-1.5-flash")
    GEMINI_BASE_URL: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    GEMINI_TIMEOUT: float = Field(default=30.0)

    # Public URLs
    FRONTEND_URL: str = Field(default="https://jevahapp.com")
    API_URL: str = Field(default="http://localhost:8000")
    RTMP_BASE_URL: str = Field(default="rtmp://live.jevahapp.com/live")
    PLAYBACK_BASE_URL: str = Field(default="https://live.jevahapp.com/hls")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    @property
    def storage_enabled(self) -> bool:
        return bool(self.STORAGE_BUCKET and self.STORAGE_ACCESS_KEY_ID and self.STORAGE_SECRET_ACCESS_KEY)


settings = Settings()
