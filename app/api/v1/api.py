from fastapi import APIRouter

# Import routers from modules
from app.api.v1.endpoints import attendance, me, members

api_router = APIRouter()

# Attendance module (front-desk check-in and daily list)
api_router.include_router(attendance.router, prefix="/gyms", tags=["attendance"])

# Member progress and leaderboard
api_router.include_router(members.router, prefix="/gyms", tags=["members"])

# Member self-service
api_router.include_router(me.router, prefix="/me", tags=["me"])
