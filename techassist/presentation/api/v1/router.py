"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from techassist.presentation.api.v1.endpoints.health import router as health_router
from techassist.presentation.api.v1.assistant_controller import router as assistant_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(assistant_router)
