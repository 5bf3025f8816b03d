import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Database settings
    db_file: str = os.getenv("LENDING_DB_FILE", "library.db")
    db_timeout: float = float(os.getenv("LENDING_DB_TIMEOUT", "30"))

    # Lending rules
    loan_days: int = int(os.getenv("LENDING_LOAN_DAYS", "7"))
    extension_days: int = int(os.getenv("LENDING_EXTENSION_DAYS", "7"))
    max_scan_days: int = int(os.getenv("LENDING_MAX_SCAN_DAYS", "3660"))

    # weekend | custom | anniversary | weekend+custom | weekend+anniversary
    calendar_policy: str = os.getenv("LENDING_CALENDAR_POLICY", "weekend+custom")

    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_key: str = os.getenv("API_KEY", "super-secret-key")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Lending Engine")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = _env_bool("DEBUG", "False")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
