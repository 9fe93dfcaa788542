"""
API v1 routes aggregation
"""
from fastapi import APIRouter
from app.api.v1 import achievements

api_router = APIRouter()

# Achievements
api_router.include_router(achievements.router, tags=["achievements"])
