from fastapi import APIRouter

from aether.organizations.api.organization_router import router as organization_router
from aether.spaces.api.space_router import router as space_router

router = APIRouter()

router.include_router(space_router, prefix="/spaces", tags=["spaces"])
router.include_router(organization_router, prefix="/organizations", tags=["organizations"])
