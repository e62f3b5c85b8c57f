from __future__ import annotations

from fastapi import APIRouter

from src.api.health import router as health_router
from src.api.kpis import router as kpis_router
from src.api.sales import router as sales_router
from src.api.targets import router as targets_router


api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(kpis_router)
api_router.include_router(sales_router)
api_router.include_router(targets_router)
