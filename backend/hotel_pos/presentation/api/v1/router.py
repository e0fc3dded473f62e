"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from hotel_pos.presentation.api.v1.endpoints.health import router as health_router
from hotel_pos.presentation.api.v1.endpoints.collections import router as collections_router
from hotel_pos.presentation.api.v1.endpoints.status import router as status_router
from hotel_pos.presentation.api.v1.endpoints.seed import router as seed_router
from hotel_pos.presentation.api.v1.endpoints.maintenance import router as maintenance_router
from hotel_pos.presentation.api.v1.endpoints.snapshots import router as snapshots_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(collections_router)
router.include_router(status_router)
router.include_router(seed_router)
router.include_router(maintenance_router)
router.include_router(snapshots_router)
