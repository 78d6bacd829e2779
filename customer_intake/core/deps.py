from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from customer_intake.db.session import SessionLocal
from customer_intake.services.customer_store import CustomerStore


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_customer_store(db: Session = Depends(get_db)) -> CustomerStore:
    return CustomerStore(db)
