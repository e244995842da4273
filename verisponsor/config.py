import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


ENV_STORAGE_BACKEND = "STORAGE_BACKEND"
ENV_MONGO_URL = "MONGO_URL"
ENV_MONGO_DB = "MONGO_DB"
ENV_REDIS_URL = "REDIS_URL"
ENV_LOG_LEVEL = "LOG_LEVEL"

BACKEND_MEMORY = "memory"
BACKEND_MONGO = "mongo"
SUPPORTED_BACKENDS = (BACKEND_MEMORY, BACKEND_MONGO)

DEFAULT_MONGO_URL = "mongodb://localhost:27017"
DEFAULT_MONGO_DB = "verisponsor"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:

    storage_backend: str = BACKEND_MEMORY
    mongo_url: str = DEFAULT_MONGO_URL
    mongo_db: str = DEFAULT_MONGO_DB
    redis_url: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def uses_mongo(self) -> bool:
        return self.storage_backend == BACKEND_MONGO


def load_settings() -> Settings:
    """Read settings from the environment, honouring a local .env file."""

    load_dotenv()
    backend = os.getenv(ENV_STORAGE_BACKEND, BACKEND_MEMORY).strip().lower()
    if backend not in SUPPORTED_BACKENDS:
        raise RuntimeError(f"Unsupported {ENV_STORAGE_BACKEND}: {backend!r}")
    return Settings(
        storage_backend=backend,
        mongo_url=os.getenv(ENV_MONGO_URL, DEFAULT_MONGO_URL),
        mongo_db=os.getenv(ENV_MONGO_DB, DEFAULT_MONGO_DB),
        redis_url=os.getenv(ENV_REDIS_URL) or None,
        log_level=os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
