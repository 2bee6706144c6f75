import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///fintrack.db"
DEFAULT_SEED_PATH = "data/seed.json"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str
    seed_path: str


def load_settings() -> Settings:
    """Settings from the environment, with a local ``.env`` file applied first."""
    load_dotenv()
    return Settings(
        database_url=os.getenv("FINTRACK_DATABASE_URL", DEFAULT_DATABASE_URL),
        log_level=os.getenv("FINTRACK_LOG_LEVEL", "INFO").upper(),
        seed_path=os.getenv("FINTRACK_SEED_PATH", DEFAULT_SEED_PATH),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
