"""
Services module for the check-in app

This module includes all service-related modules, which implement the business logic of the application.
Services interact with repositories and Redis.
"""

# servicios disponibles
from app.services.cache_service import cache_service
from app.services.async_leaderboard import async_leaderboard_service
from app.services.async_badge import async_badge_service
from app.services.async_checkin import async_checkin_service
from app.services.async_member_progress import async_member_progress_service
