"""
API v1 Router

All org-scoped endpoints are prefixed with /orgs/{orgId}.
"""

from fastapi import APIRouter
from . import auth, help_types, organizations, questions, quizzes, share, statistics, subscription, teams
from .categories import categories_router, leagues_router

router = APIRouter()

# Authentication (not org-scoped)
router.include_router(auth.router, prefix="/auth", tags=["Auth"])

# Public leaderboards (no auth)
router.include_router(share.router, prefix="/share", tags=["Share"])

# Organization routes (org-scoped: details, members, language, quiz defaults)
router.include_router(organizations.router, prefix="/orgs/{orgId}", tags=["Organizations"])

# Include resource routers
router.include_router(subscription.router, prefix="/orgs/{orgId}/subscription", tags=["Subscription"])
router.include_router(teams.router, prefix="/orgs/{orgId}/teams", tags=["Teams"])
router.include_router(categories_router, prefix="/orgs/{orgId}/categories", tags=["Categories"])
router.include_router(leagues_router, prefix="/orgs/{orgId}/leagues", tags=["Leagues"])
router.include_router(help_types.router, prefix="/orgs/{orgId}/help-types", tags=["Help types"])
router.include_router(questions.router, prefix="/orgs/{orgId}/questions", tags=["Questions"])
router.include_router(quizzes.router, prefix="/orgs/{orgId}/quizzes", tags=["Quizzes"])
router.include_router(statistics.router, prefix="/orgs/{orgId}/statistics", tags=["Statistics"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/auth",
            "/share/{token}",
            "/orgs/{orgId}",
            "/orgs/{orgId}/settings",
            "/orgs/{orgId}/subscription",
            "/orgs/{orgId}/teams",
            "/orgs/{orgId}/categories",
            "/orgs/{orgId}/leagues",
            "/orgs/{orgId}/help-types",
            "/orgs/{orgId}/questions",
            "/orgs/{orgId}/quizzes",
            "/orgs/{orgId}/statistics",
        ],
    }
