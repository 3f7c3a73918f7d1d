from fastapi import APIRouter

from .routes import (
    coupons,
    health,
    identity,
    notices,
    polls,
    reports,
    visits,
)

api_router = APIRouter()

# Health check
api_router.include_router(health.router, tags=["health"])

# Session
api_router.include_router(identity.router, prefix="/identity", tags=["identity"])

# Loyalty
api_router.include_router(visits.router, prefix="/visits", tags=["visits"])
api_router.include_router(coupons.router, prefix="/coupons", tags=["coupons"])

# Engagement
api_router.include_router(polls.router, prefix="/polls", tags=["polls"])
api_router.include_router(notices.router, prefix="/notices", tags=["notices"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
