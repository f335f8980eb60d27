"""Admin API (roles in PRIVILEGED_ROLES; ADMIN always allowed)."""
from fastapi import APIRouter
from app.api.v1.admin import attendance as admin_attendance
from app.api.v1.admin import policy as admin_policy
from app.api.v1.admin import shifts as admin_shifts

admin_router = APIRouter(prefix="/admin", tags=["admin"])
admin_router.include_router(admin_policy.router, prefix="/attendance-policy", tags=["admin-attendance-policy"])
admin_router.include_router(admin_shifts.router, prefix="/shifts", tags=["admin-shifts"])
admin_router.include_router(admin_attendance.router, prefix="/attendance", tags=["admin-attendance"])
