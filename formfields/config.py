"""
Settings — read once from the environment (and a .env file, if present).

    FORMFIELDS_DATA_DIR     embedded PostgreSQL data directory
    FORMFIELDS_META_TABLE   table holding field values (default entity_meta)
    FORMFIELDS_SECRET       key for anti-forgery tokens
    FORMFIELDS_LOG_LEVEL    logging level name (default INFO)
"""

import logging
import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()

DEFAULT_DATA_DIR = os.path.join(os.path.dirname(__file__), "..", ".pgdata", "formfields")
DEFAULT_META_TABLE = "entity_meta"

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


@dataclass(frozen=True)
class Settings:
    data_dir: str = DEFAULT_DATA_DIR
    meta_table: str = DEFAULT_META_TABLE
    secret: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            data_dir=os.getenv("FORMFIELDS_DATA_DIR", DEFAULT_DATA_DIR),
            meta_table=os.getenv("FORMFIELDS_META_TABLE", DEFAULT_META_TABLE),
            secret=os.getenv("FORMFIELDS_SECRET", ""),
            log_level=os.getenv("FORMFIELDS_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        if not self.secret:
            raise ValueError("FORMFIELDS_SECRET environment variable is required")
        if not _IDENTIFIER.match(self.meta_table):
            raise ValueError(f"FORMFIELDS_META_TABLE {self.meta_table!r} is not a valid table name")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"FORMFIELDS_LOG_LEVEL {self.log_level!r} is not a logging level")

    def configure_logging(self) -> None:
        logging.basicConfig(
            level=self.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
