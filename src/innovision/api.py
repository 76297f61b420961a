from fastapi import APIRouter

from innovision.modules.admins import router as admin_auth_router
from innovision.modules.enrollments import admin_router as admin_applicants_router
from innovision.modules.enrollments import router as enrollments_router

api_router = APIRouter()

api_router.include_router(enrollments_router, prefix="/enrollments", tags=["Enrollments"])

api_router.include_router(
    admin_applicants_router,
    prefix="/admin/applicants",
    tags=["Admin - Applicants"],
)

api_router.include_router(
    admin_auth_router,
    prefix="/admin/auth",
    tags=["Admin - Authentication"],
)
