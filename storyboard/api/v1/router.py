from fastapi import APIRouter

from storyboard.api.v1.routes.export import router as export_router
from storyboard.api.v1.routes.frames import router as frames_router
from storyboard.api.v1.routes.projects import router as projects_router
from storyboard.api.v1.routes.symbols import router as symbols_router

api_router = APIRouter()
api_router.include_router(projects_router, prefix="/projects", tags=["projects"])
api_router.include_router(frames_router, tags=["frames"])
api_router.include_router(symbols_router, tags=["symbols"])
api_router.include_router(export_router, tags=["export"])
