from fastapi import APIRouter

from admission_portal.modules.applications.router import router as applications_router
from admission_portal.modules.auth.router import router as auth_router
from admission_portal.modules.documents.router import router as documents_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(documents_router, prefix="/documents", tags=["Documents"])
