import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PACKAGE_SCHEMA_DIR = Path(__file__).parent / "schemata"


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./tmk_validator.db")
    SCHEMA_DIR: Path = Path(os.getenv("SCHEMA_DIR", str(PACKAGE_SCHEMA_DIR)))
    MODEL_NAMES: tuple[str, ...] = tuple(
        name.strip()
        for name in os.getenv("MODEL_NAMES", "Task,Method,Knowledge").split(",")
        if name.strip()
    )
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    RECORD_RUNS: bool = os.getenv("RECORD_RUNS", "true").lower() in ("1", "true", "yes")
    KEY_COLLISION_MODE: str = os.getenv("KEY_COLLISION_MODE", "error")


settings = Settings()
