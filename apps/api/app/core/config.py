"""Application configuration with environment variables."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "1.00.00"

    # Proxy/Load Balancer Settings
    # Set to True when running behind nginx/Cloudflare to trust X-Forwarded-For
    TRUST_PROXY_HEADERS: bool = False

    # Database
    DATABASE_URL: str
    DB_CONNECT_TIMEOUT_SECONDS: int = 10

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 168

    # CORS
    CORS_ORIGINS: str = "http://localhost:8083"

    # Frontend (public track/upload/payment pages)
    FRONTEND_URL: str = "http://localhost:8083"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute, shared through Redis when reachable)
    REDIS_URL: str = "redis://localhost:6379/0"
    TESTING: bool = False  # Disables rate limits
    RATE_LIMIT_AUTH: int = 5  # Login/register attempts
    RATE_LIMIT_PUBLIC: int = 20  # Public submission, track and upload endpoints
    RATE_LIMIT_API: int = 120  # General API

    # Storage (S3 is used only when all three AWS values are set)
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_S3_BUCKET: str = ""
    AWS_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str = ""
    LOCAL_UPLOAD_DIR: str = "uploads"
    STORAGE_TIMEOUT_SECONDS: int = 30
    MAX_UPLOAD_SIZE_BYTES: int = 10 * 1024 * 1024  # 10 MB
    MAX_FILES_PER_UPLOAD: int = 10

    # WhatsApp via Twilio (dry run when unset)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_WHATSAPP_NUMBER: str = ""
    TWILIO_API_BASE: str = "https://api.twilio.com/2010-04-01"
    MESSAGING_TIMEOUT_SECONDS: float = 10.0
    MESSAGING_MAX_ATTEMPTS: int = 3

    # Access link defaults
    DEFAULT_CURRENCY: str = "MAD"
    DEFAULT_LINK_EXPIRY_DAYS: int = 7
    DEFAULT_MAX_UPLOADS: int = 10

    # Bank details snapshot copied onto new payment links
    BANK_NAME: str = "Attijariwafa Bank"
    BANK_ACCOUNT_NAME: str = "Connect Job World"
    BANK_ACCOUNT_NUMBER: str = "007 810 0002 5810 0000 1234 56"
    BANK_RIB: str = "007 810 0002581000001234 56"
    BANK_SWIFT: str = "BCMAMAMC"

    # Worker
    WORKER_POLL_INTERVAL: int = 10
    WORKER_BATCH_SIZE: int = 10
    WORKER_STALE_JOB_SECONDS: int = 600  # Running jobs older than this are requeued

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production."""
        return self.ENV != "dev"

    @property
    def s3_enabled(self) -> bool:
        return bool(self.AWS_ACCESS_KEY_ID and self.AWS_SECRET_ACCESS_KEY and self.AWS_S3_BUCKET)

    @property
    def is_serverless(self) -> bool:
        return any(
            os.getenv(name)
            for name in ("VERCEL", "AWS_LAMBDA_FUNCTION_NAME", "LAMBDA_TASK_ROOT")
        )

    @property
    def upload_root(self) -> str:
        """Local upload directory (/tmp on serverless runtimes)."""
        if self.is_serverless:
            return "/tmp/uploads"
        return self.LOCAL_UPLOAD_DIR

    @property
    def twilio_enabled(self) -> bool:
        return bool(
            self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_WHATSAPP_NUMBER
        )

    @property
    def default_bank_details(self) -> dict[str, str]:
        return {
            "bank_name": self.BANK_NAME,
            "account_name": self.BANK_ACCOUNT_NAME,
            "account_number": self.BANK_ACCOUNT_NUMBER,
            "rib": self.BANK_RIB,
            "swift": self.BANK_SWIFT,
        }


settings = Settings()
