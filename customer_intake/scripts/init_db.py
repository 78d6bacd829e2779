from __future__ import annotations

import argparse

import structlog

from customer_intake.core.logging import configure_logging
from customer_intake.db.base import Base
from customer_intake.db.session import engine

# Import models to register with SQLAlchemy
import customer_intake.models  # noqa: F401

logger = structlog.get_logger()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the customers table and its unique email index.")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args(argv)

    configure_logging()

    if args.drop:
        Base.metadata.drop_all(bind=engine)
        logger.warning("tables_dropped", url=engine.url.render_as_string(hide_password=True))

    Base.metadata.create_all(bind=engine)
    logger.info("db_initialized", tables=sorted(Base.metadata.tables))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
