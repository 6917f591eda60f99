import os

from dotenv import load_dotenv

load_dotenv()


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default)).strip()
    try:
        return int(raw)
    except Exception:
        return int(default)


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "1" if default else "0").strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return bool(default)


class Settings:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./visit_scheduler.db")
    DB_AUTO_CREATE_ALL = _get_bool("DB_AUTO_CREATE_ALL", False)
    DB_ECHO = _get_bool("DB_ECHO", False)
    DB_LOCK_TIMEOUT_MS = _get_int("DB_LOCK_TIMEOUT_MS", 5000)
    DB_POOL_TIMEOUT_SECONDS = _get_int("DB_POOL_TIMEOUT_SECONDS", 10)

    SCHEDULING_TIMEZONE = os.getenv("SCHEDULING_TIMEZONE", "Europe/Warsaw").strip()
    VISIT_HOURS_START = _get_int("VISIT_HOURS_START", 9)
    VISIT_HOURS_END = _get_int("VISIT_HOURS_END", 19)
    SLOT_MINUTES = _get_int("SLOT_MINUTES", 15)
    SLOT_CAPACITY = _get_int("SLOT_CAPACITY", 2)
    MAX_VISITS_PER_WEEK = _get_int("MAX_VISITS_PER_WEEK", 30)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    LOG_JSON = _get_bool("LOG_JSON", True)


settings = Settings()
