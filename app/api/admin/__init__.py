"""
Admin API Routes Package.

Aggregates all route-admin endpoints:
- session: admin login
- checkin: participant scan / abandon batches
- monitoring: timeout and no-show reports, team snapshots
"""

from fastapi import APIRouter

from app.api.admin import checkin, monitoring, session

# Create main admin router
admin_router = APIRouter()

# Include all admin sub-routers
admin_router.include_router(session.router)
admin_router.include_router(checkin.router)
admin_router.include_router(monitoring.router)

__all__ = ["admin_router"]
