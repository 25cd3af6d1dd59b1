from fastapi import APIRouter
from app.api.v1.endpoints import races

api_router = APIRouter()

api_router.include_router(races.router, prefix="/races", tags=["races"])
