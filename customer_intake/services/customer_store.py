from __future__ import annotations

from typing import Any, NoReturn

import structlog
from sqlalchemy import select, text, update
from sqlalchemy.exc import DataError, IntegrityError, InterfaceError, OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from customer_intake.core.errors import MalformedQuery, StorageError, UniquenessViolation
from customer_intake.core.logging import mask_email
from customer_intake.models.customer import Customer
from customer_intake.schemas.customer import CustomerRecord

logger = structlog.get_logger()


def _is_email_conflict(exc: IntegrityError) -> bool:
    """True when the violated constraint is the unique email index.

    sqlite, PostgreSQL and MySQL word the message differently but all name
    the email column or its ix_customers_email index.
    """
    detail = str(exc.orig).lower()
    return "email" in detail and ("unique" in detail or "duplicate" in detail)


class CustomerStore:
    """Customer persistence keyed by email.

    The store is handed an explicit SQLAlchemy session; connection pooling is
    the engine's job. Uniqueness of email is left to the database constraint so
    that concurrent inserts of the same email cannot both succeed.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _fail(self, exc: Exception, operation: str) -> NoReturn:
        self.db.rollback()
        if isinstance(exc, ProgrammingError):
            logger.error("customer_store_malformed_query", operation=operation, error=str(exc))
            raise MalformedQuery() from exc
        if isinstance(exc, (DataError, IntegrityError)):
            # Values the schema refuses, e.g. an over-long field
            logger.error("customer_store_rejected_values", operation=operation, error=str(exc))
            raise StorageError() from exc
        logger.error(
            "database_unavailable",
            operation=operation,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        raise StorageError() from exc

    def insert(self, record: CustomerRecord) -> int:
        customer = Customer(
            lastname=record.lastname,
            firstname=record.firstname,
            email=record.email,
            city=record.city,
            country=record.country,
            image_path=record.image_path,
        )
        self.db.add(customer)
        try:
            self.db.commit()
        except IntegrityError as exc:
            if not _is_email_conflict(exc):
                self._fail(exc, "insert")
            self.db.rollback()
            logger.info("customer_insert_duplicate", email=mask_email(record.email))
            raise UniquenessViolation(record.email) from exc
        except (DataError, OperationalError, InterfaceError, ProgrammingError) as exc:
            self._fail(exc, "insert")

        logger.info("customer_inserted", customer_id=customer.id, email=mask_email(record.email))
        return customer.id

    def update(self, record: CustomerRecord) -> int:
        """Overwrite the mutable fields of the customer with ``record.email``.

        Returns the number of matched rows. Zero is not an error: callers that
        need the customer to exist must check with ``find_by_email`` first.
        """
        stmt = (
            update(Customer)
            .where(Customer.email == record.email)
            .values(
                lastname=record.lastname,
                firstname=record.firstname,
                city=record.city,
                country=record.country,
                image_path=record.image_path,
            )
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except (DataError, IntegrityError, OperationalError, InterfaceError, ProgrammingError) as exc:
            self._fail(exc, "update")

        matched = result.rowcount
        logger.info("customer_updated", matched=matched, email=mask_email(record.email))
        return matched

    def find_by_email(self, email: str) -> CustomerRecord | None:
        try:
            stmt = select(Customer).where(Customer.email == email).execution_options(populate_existing=True)
            customer = self.db.execute(stmt).scalar_one_or_none()
        except (OperationalError, InterfaceError, ProgrammingError) as exc:
            self._fail(exc, "find_by_email")

        if customer is None:
            return None
        return CustomerRecord.model_validate(customer)

    def driver_info(self) -> dict[str, Any]:
        """Describe the database driver and whether a connection can be made.

        Never raises; a failed probe is reported as ``connected=False``.
        """
        bind = self.db.get_bind()
        dialect = bind.dialect
        info: dict[str, Any] = {
            "driver": dialect.driver,
            "dialect": dialect.name,
            "server_version": "Unknown",
            "connected": False,
        }
        try:
            self.db.execute(text("SELECT 1"))
            version = dialect.server_version_info
            if version:
                info["server_version"] = ".".join(str(v) for v in version)
            info["connected"] = True
        except (OperationalError, InterfaceError) as exc:
            self.db.rollback()
            logger.warning("database_probe_failed", error=str(exc))
        return info
