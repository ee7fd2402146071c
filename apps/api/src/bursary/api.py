from fastapi import APIRouter

from bursary.modules.applications.admin_router import router as admin_applications_router
from bursary.modules.applications.router import router as applications_router
from bursary.modules.auth import router as auth_router
from bursary.modules.contact.router import router as contact_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(
    admin_applications_router,
    prefix="/admin/applications",
    tags=["Admin - Applications"],
)

api_router.include_router(contact_router, prefix="/contact", tags=["Contact"])
