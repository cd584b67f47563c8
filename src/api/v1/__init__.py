"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.dashboards import router as dashboards_router
from api.v1.routes.invitations import invitations_router, workspace_invitations_router
from api.v1.routes.workspaces import router as workspaces_router

router = APIRouter()
router.include_router(workspaces_router)
router.include_router(workspace_invitations_router)
router.include_router(invitations_router)
router.include_router(dashboards_router)
