"""Tests for engine construction, settings and the schema bootstrap script."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from customer_intake.core.config import Settings
from customer_intake.db.session import _connect_args, build_engine
from customer_intake.scripts import init_db


class TestConnectArgs:
    def test_postgres_gets_connect_timeout(self) -> None:
        assert _connect_args("postgresql+psycopg2://u:p@db/customers", 5) == {"connect_timeout": 5}

    def test_mysql_gets_timeout_and_charset(self) -> None:
        assert _connect_args("mysql+pymysql://u:p@db/customers", 3) == {"connect_timeout": 3, "charset": "utf8mb4"}

    def test_sqlite(self) -> None:
        assert _connect_args("sqlite://", 2) == {"timeout": 2, "check_same_thread": False}

    def test_build_engine_sqlite(self) -> None:
        engine = build_engine("sqlite://", connect_timeout=1)
        try:
            assert engine.dialect.name == "sqlite"
        finally:
            engine.dispose()


class TestSettings:
    def test_upload_defaults(self) -> None:
        settings = Settings()
        assert settings.max_upload_bytes == 5242880
        assert settings.upload_path_prefix == "uploads"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_UPLOAD_BYTES", "1024")
        monkeypatch.setenv("UPLOAD_DIR", "/srv/uploads")
        settings = Settings()
        assert settings.max_upload_bytes == 1024
        assert settings.upload_dir == "/srv/uploads"


class TestInitDb:
    def test_creates_customers_table(self, monkeypatch: pytest.MonkeyPatch) -> None:
        engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        monkeypatch.setattr(init_db, "engine", engine)

        assert init_db.main([]) == 0

        inspector = inspect(engine)
        assert "customers" in inspector.get_table_names()
        unique_cols = [c for idx in inspector.get_indexes("customers") if idx["unique"] for c in idx["column_names"]]
        assert "email" in unique_cols

    def test_drop_and_recreate(self, monkeypatch: pytest.MonkeyPatch) -> None:
        engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        monkeypatch.setattr(init_db, "engine", engine)

        init_db.main([])
        assert init_db.main(["--drop"]) == 0
        assert "customers" in inspect(engine).get_table_names()
