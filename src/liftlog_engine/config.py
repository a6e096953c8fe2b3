import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Config:
    database_url: str
    log_format: str = "json"
    log_level: str = "INFO"
    collections_table: str = "collections"

    @classmethod
    def from_env(cls) -> "Config":
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise RuntimeError("DATABASE_URL must be set")

        return cls(
            database_url=database_url,
            log_format=os.environ.get("LIFTLOG_LOG_FORMAT", "json"),
            log_level=os.environ.get("LIFTLOG_LOG_LEVEL", "INFO"),
            collections_table=os.environ.get("LIFTLOG_COLLECTIONS_TABLE", "collections"),
        )
