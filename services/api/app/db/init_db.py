from __future__ import annotations

import os
from pathlib import Path

import structlog
from services.api.app.db.database import database_url, get_engine
from services.api.app.db.models import Base

logger = structlog.get_logger(__name__)


def init_db() -> None:
    if os.getenv("ORDERBRIDGE_DB_AUTO_CREATE", "true").strip().lower() not in {
        "1",
        "true",
        "yes",
        "y",
    }:
        return

    url = database_url()
    if url.startswith("sqlite") and ":///" in url:
        # SQLite will not create missing parent directories for the database file.
        db_file = url.split(":///", 1)[1]
        if db_file and db_file != ":memory:":
            Path(db_file).expanduser().parent.mkdir(parents=True, exist_ok=True)

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured", tables=sorted(Base.metadata.tables))
