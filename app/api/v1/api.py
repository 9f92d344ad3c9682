from fastapi import APIRouter
from app.api.v1.endpoints import attendance, admin, maintenance

api_router = APIRouter()

# Register routes
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(maintenance.router, prefix="/maintenance", tags=["Maintenance"])
