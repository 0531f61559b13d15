"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from stagebook.api.routes import applications, bookings, programs, slots

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(programs.router)
api_router.include_router(slots.router)
api_router.include_router(applications.router)
api_router.include_router(bookings.router)
