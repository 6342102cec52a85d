"""API routes for the FastAPI application."""

from fastapi import APIRouter

from evohub.api.v1.endpoints import admin, ai_image, ai_video, credits, dashboard, health, usage

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(usage.router, prefix="/usage", tags=["usage"])
api_router.include_router(ai_image.router, prefix="/ai-image", tags=["ai-image"])
api_router.include_router(ai_video.router, prefix="/ai-video", tags=["ai-video"])
api_router.include_router(credits.router, prefix="/credits", tags=["credits"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
