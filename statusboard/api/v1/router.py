from fastapi import APIRouter

from statusboard.api.v1.dashboard import router as dashboard_router
from statusboard.api.v1.health import router as health_router
from statusboard.api.v1.websocket import router as websocket_router

v1_router = APIRouter()

v1_router.include_router(health_router, tags=["Health"])
v1_router.include_router(dashboard_router, tags=["Dashboard"])

# WebSocket
v1_router.include_router(websocket_router, tags=["WebSocket"])
