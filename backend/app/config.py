import os
from dataclasses import dataclass


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    storage_backend: str = os.getenv("STORAGE_BACKEND", "memory").strip().lower()
    mongo_uri: str = os.getenv("MONGO_URI", os.getenv("URI", "mongodb://localhost:27017"))
    mongo_database: str = os.getenv("MONGO_DATABASE", "financebuddy")
    mongo_timeout_ms: int = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    log_json: bool = _env_bool("LOG_JSON", "true")


settings = Settings()
