from fastapi import APIRouter

from repairshop.app.api.v1.endpoints.jobs import router as jobs_router
from repairshop.app.api.v1.endpoints.stock import router as stock_router

router = APIRouter()
router.include_router(jobs_router, tags=["jobs"])
router.include_router(stock_router, tags=["stock"])
