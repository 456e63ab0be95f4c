from __future__ import annotations

from fastapi import APIRouter

from sipeter.api.routes import admin_analysis, admin_bookings, admin_requests, public

api_router = APIRouter()

api_router.include_router(public.router, prefix="/public", tags=["public"])

# Admin
api_router.include_router(admin_bookings.router, prefix="/admin", tags=["admin-bookings"])
api_router.include_router(admin_requests.router, prefix="/admin", tags=["admin-requests"])
api_router.include_router(admin_analysis.router, prefix="/admin", tags=["admin-analysis"])
