from __future__ import annotations

from fastapi import APIRouter, Depends

from customer_intake.core.deps import get_customer_store
from customer_intake.schemas.customer import DriverInfo
from customer_intake.services.customer_store import CustomerStore

router = APIRouter()


@router.get("/db", response_model=DriverInfo)
def database_info(store: CustomerStore = Depends(get_customer_store)):
    return DriverInfo(**store.driver_info())
