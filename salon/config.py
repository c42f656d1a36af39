# salon/config.py

import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from salon.core.statuses import CONFIRMED, PENDING

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

INSECURE_SECRET_KEY = "change-me-later"
BOOKING_START_STATUSES = (PENDING, CONFIRMED)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Settings:
    database_url: str = "sqlite:///./salon.db"
    secret_key: str = INSECURE_SECRET_KEY
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    slot_minutes: int = 30
    default_booking_status: str = "pending"  # or "confirmed"

    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_ssl: bool = False
    email_from_address: str = "Salon <noreply@salon.local>"

    log_level: str = "INFO"
    sql_echo: bool = False

    def __post_init__(self):
        if self.default_booking_status not in BOOKING_START_STATUSES:
            raise ValueError(
                f"DEFAULT_BOOKING_STATUS must be one of {', '.join(BOOKING_START_STATUSES)}, "
                f"got {self.default_booking_status!r}"
            )
        if self.slot_minutes <= 0:
            raise ValueError("SLOT_MINUTES must be positive")

    @classmethod
    def from_env(cls) -> "Settings":
        secret_key = os.getenv("SECRET_KEY")
        if not secret_key:
            warnings.warn(
                "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
            )
            secret_key = INSECURE_SECRET_KEY

        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./salon.db"),
            secret_key=secret_key,
            algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30")),
            slot_minutes=int(os.getenv("SLOT_MINUTES", "30")),
            default_booking_status=os.getenv("DEFAULT_BOOKING_STATUS", "pending"),
            smtp_host=os.getenv("SMTP_HOST"),
            smtp_port=int(os.getenv("SMTP_PORT", "587")),
            smtp_user=os.getenv("SMTP_USER"),
            smtp_password=os.getenv("SMTP_PASSWORD"),
            smtp_use_ssl=_env_bool("SMTP_USE_SSL", "false"),
            email_from_address=os.getenv("EMAIL_FROM_ADDRESS", "Salon <noreply@salon.local>"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            sql_echo=_env_bool("DB_ECHO", "false"),
        )
