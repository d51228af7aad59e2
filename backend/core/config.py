import os
from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> frozenset[str]:
    return frozenset(part.strip().upper() for part in value.split(",") if part.strip())


class Settings:
    database_url: str = os.getenv(
        "DATABASE_URL",
        "sqlite+aiosqlite:///./inventory.db"
    )
    database_echo: bool = os.getenv("DATABASE_ECHO", "False").lower() == "true"

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Item categories tracked per physical unit (signal number) instead of by quantity
    serialized_categories: frozenset[str] = _csv(os.getenv("SERIALIZED_CATEGORIES", "SERIALIZED,TANK,탱크"))

    backup_version: str = os.getenv("BACKUP_VERSION", "4.0")

    # Gemini Settings
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
    gemini_timeout: float = float(os.getenv("GEMINI_TIMEOUT", "30"))


settings = Settings()
