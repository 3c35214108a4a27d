import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Storage
    data_dir: str = os.getenv("LIBRARY_DATA_DIR", "data")

    # Application
    app_name: str = os.getenv("APP_NAME", "Library Catalog")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = _env_flag("DEBUG")
    log_level: str = os.getenv("LOG_LEVEL", "DEBUG" if _env_flag("DEBUG") else "WARNING").upper()


settings = Settings()
