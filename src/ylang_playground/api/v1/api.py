from fastapi import APIRouter

from .health import router as health_router
from .playground import router as playground_router


api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(playground_router)
