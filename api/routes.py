"""
API Routes for the Face Check-in System

Collects the health check and the user/log routers under one router,
mounted at /api by main.py.
"""
from fastapi import APIRouter

from .schemas import HealthResponse
from .users import router as users_router
from .logs import router as logs_router

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint
    """
    return HealthResponse(status="healthy")


router.include_router(users_router)
router.include_router(logs_router)
