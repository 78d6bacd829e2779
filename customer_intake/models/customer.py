from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from customer_intake.db.base import Base
from customer_intake.models._mixins import TimestampMixin


class Customer(Base, TimestampMixin):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    lastname: Mapped[str] = mapped_column(String(255), nullable=False)
    firstname: Mapped[str] = mapped_column(String(255), nullable=False)

    # Natural key: lookups and updates match on email, uniqueness is enforced here.
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    city: Mapped[str] = mapped_column(String(255), nullable=False)
    country: Mapped[str] = mapped_column(String(255), nullable=False)

    image_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
