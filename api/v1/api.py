from fastapi import APIRouter
from apps.coordinates.routes import router as coordinates_router
from apps.rescuers.routes import router as rescuers_router
from apps.live.routes import router as live_router

api_router = APIRouter()
api_router.include_router(coordinates_router, prefix="/coordinates", tags=["坐标转换"])
api_router.include_router(rescuers_router, prefix="/rescuers", tags=["搜救队员"])
api_router.include_router(live_router, prefix="/live", tags=["实时通道"])
