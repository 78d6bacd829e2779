from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from customer_intake.core.config import get_settings


def _connect_args(database_url: str, timeout: int) -> dict[str, Any]:
    backend = make_url(database_url).get_backend_name()
    if backend == "postgresql":
        return {"connect_timeout": timeout}
    if backend == "mysql":
        return {"connect_timeout": timeout, "charset": "utf8mb4"}
    if backend == "sqlite":
        return {"timeout": timeout, "check_same_thread": False}
    return {}


def build_engine(database_url: str, *, connect_timeout: int = 5) -> Engine:
    # Pooling is left to SQLAlchemy; pre-ping drops stale connections.
    return create_engine(
        database_url,
        pool_pre_ping=True,
        connect_args=_connect_args(database_url, connect_timeout),
    )


_settings = get_settings()

engine = build_engine(_settings.database_url, connect_timeout=_settings.db_connect_timeout)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
