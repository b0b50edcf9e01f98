"""
API v1 Router

All org-scoped endpoints are prefixed with /orgs/{orgId}.
"""

from fastapi import APIRouter
from . import billing, entities, groups, invitations, members, nav, users
from .organizations import router_global as orgs_global_router
from .organizations import router_scoped as orgs_scoped_router

router = APIRouter()

# Organization routes (non-org-scoped: list, create)
router.include_router(orgs_global_router)

# Organization routes (org-scoped: get, update, delete)
router.include_router(orgs_scoped_router, prefix="/orgs/{orgId}", tags=["Organizations"])

# Org-scoped resource routers
router.include_router(members.router, prefix="/orgs/{orgId}/members", tags=["Members"])
router.include_router(groups.router, prefix="/orgs/{orgId}/groups", tags=["Groups"])
router.include_router(entities.router, prefix="/orgs/{orgId}/entities", tags=["Entities"])
router.include_router(invitations.router, prefix="/orgs/{orgId}/invitations", tags=["Invitations"])

# Account-level routes
router.include_router(invitations.accept_router, tags=["Invitations"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(billing.router, prefix="/billing", tags=["Billing"])
router.include_router(nav.router, tags=["Navigation"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/nav",
            "/orgs",
            "/orgs/{orgId}/members",
            "/orgs/{orgId}/groups",
            "/orgs/{orgId}/entities",
            "/orgs/{orgId}/invitations",
            "/invitations/{token}/accept",
            "/users/register",
            "/users/account",
            "/billing/subscriptions",
        ],
    }
