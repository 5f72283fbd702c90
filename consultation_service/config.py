import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Force-load .env (Windows-safe, reload-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_flag(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime configuration, read once at process start."""

    service_name: str = "consultation-service"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    database_url: Optional[str] = None
    database_password: Optional[str] = None
    auto_create_tables: bool = True

    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None

    resend_api_key: Optional[str] = None
    resend_from_email: Optional[str] = None
    team_email: Optional[str] = None

    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_whatsapp_number: Optional[str] = None
    team_whatsapp_number: Optional[str] = None
    twilio_client_template_sid: Optional[str] = None

    def missing(self) -> dict:
        """Map each core component to the variables it still lacks."""
        required = {
            "store": {"DATABASE_URL": self.database_url},
            "gateway": {
                "RAZORPAY_KEY_ID": self.razorpay_key_id,
                "RAZORPAY_KEY_SECRET": self.razorpay_key_secret,
            },
            "verification": {"RAZORPAY_KEY_SECRET": self.razorpay_key_secret},
        }
        return {
            component: [name for name, value in names.items() if not value]
            for component, names in required.items()
            if any(not value for value in names.values())
        }


def load_settings(env_file: Optional[Path] = ENV_PATH) -> Settings:
    if env_file is not None:
        load_dotenv(dotenv_path=env_file)

    return Settings(
        service_name=_env("SERVICE_NAME") or "consultation-service",
        log_level=_env("LOG_LEVEL") or "INFO",
        host=_env("HOST") or "0.0.0.0",
        port=int(_env("PORT") or 8000),
        database_url=_env("DATABASE_URL"),
        database_password=_env("DATABASE_PASSWORD"),
        auto_create_tables=_env_flag("AUTO_CREATE_TABLES", True),
        razorpay_key_id=_env("RAZORPAY_KEY_ID"),
        razorpay_key_secret=_env("RAZORPAY_KEY_SECRET"),
        resend_api_key=_env("RESEND_API_KEY"),
        resend_from_email=_env("RESEND_FROM_EMAIL"),
        team_email=_env("TEAM_EMAIL"),
        twilio_account_sid=_env("TWILIO_ACCOUNT_SID"),
        twilio_auth_token=_env("TWILIO_AUTH_TOKEN"),
        twilio_whatsapp_number=_env("TWILIO_WHATSAPP_NUMBER"),
        team_whatsapp_number=_env("TEAM_WHATSAPP_NUMBER"),
        twilio_client_template_sid=_env("TWILIO_CLIENT_TEMPLATE_SID"),
    )
