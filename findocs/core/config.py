import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "your-super-secret-jwt-key-change-in-production"


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME: str = "FinDocs"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET)
    JWT_ALGORITHM: str = "HS256"
    ENVELOPE_EXPIRE_DAYS: int = int(os.getenv("ENVELOPE_EXPIRE_DAYS", "7"))
    COOKIE_NAME: str = os.getenv("COOKIE_NAME", "token")

    GOOGLE_CLIENT_ID: str = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET: str = os.getenv("GOOGLE_CLIENT_SECRET", "")
    GOOGLE_REDIRECT_URI: str = os.getenv("GOOGLE_REDIRECT_URI", "postmessage")
    TOKEN_REFRESH_BUFFER_SECONDS: int = int(os.getenv("TOKEN_REFRESH_BUFFER_SECONDS", "300"))
    REVOKE_ON_LOGOUT: bool = _get_bool("REVOKE_ON_LOGOUT")

    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:5173")

    MAX_FILE_SIZE: int = 5 * 1024 * 1024
    MAX_TOTAL_SIZE: int = 25 * 1024 * 1024
    DRIVE_APP_TAG: str = os.getenv("DRIVE_APP_TAG", "FinDocs")
    LOCAL_STORAGE_PATH: str = os.getenv("LOCAL_STORAGE_PATH", "./uploads")
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
    SUBMISSION_DEADLINE_SECONDS: float = float(os.getenv("SUBMISSION_DEADLINE_SECONDS", "120"))

    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))
    RATE_LIMIT_MAX: int = int(os.getenv("RATE_LIMIT_MAX", "100"))
    RATE_LIMIT_SUBMIT_MAX: int = int(os.getenv("RATE_LIMIT_SUBMIT_MAX", "10"))
    REDIS_URL: str = os.getenv("REDIS_URL", "")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cookie_samesite(self) -> str:
        return "none" if self.is_production else "lax"

    @property
    def allowed_origins(self) -> list:
        return [o.strip() for o in (self.CLIENT_URL or "").split(",") if o.strip()]


settings = Settings()


def _mask_secret(val: str) -> str:
    if not val:
        return "<missing>"
    if len(val) <= 8:
        return "*" * len(val)
    return f"{val[:4]}...{val[-4:]}"


# Logs a redacted summary of the loaded settings and refuses unsafe production config
def check_settings(current: Settings = settings) -> None:
    logger.info(
        "Loaded settings (redacted): %s",
        {
            "ENVIRONMENT": current.ENVIRONMENT,
            "GOOGLE_CLIENT_ID": _mask_secret(current.GOOGLE_CLIENT_ID),
            "GOOGLE_CLIENT_SECRET": "SET" if current.GOOGLE_CLIENT_SECRET else "NOT SET",
            "GOOGLE_REDIRECT_URI": current.GOOGLE_REDIRECT_URI,
            "JWT_SECRET_KEY": _mask_secret(current.JWT_SECRET_KEY),
            "RATE_LIMIT_BACKEND": "redis" if current.REDIS_URL else "memory",
        },
    )

    problems = []
    if not current.GOOGLE_CLIENT_ID:
        problems.append("GOOGLE_CLIENT_ID is not set")
    if not current.GOOGLE_CLIENT_SECRET:
        problems.append("GOOGLE_CLIENT_SECRET is not set")
    if current.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
        problems.append("JWT_SECRET_KEY is using the built-in default")

    for problem in problems:
        if current.is_production:
            logger.error(problem)
        else:
            logger.warning(problem)

    if problems and current.is_production:
        raise RuntimeError(f"Invalid production configuration: {'; '.join(problems)}")
