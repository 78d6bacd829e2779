from __future__ import annotations

from fastapi import APIRouter

from customer_intake.api.routes import health, intake

api_router = APIRouter()

api_router.include_router(intake.router, prefix="/intake", tags=["intake"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
