"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Unlike a blanket include_router(dependencies=[auth]) guard, each
route here declares its own gate dependency (get_current_user,
require_org or require_resource), because the tenant and the role
whitelist differ per route. Health and the auth flows are open.
"""

from fastapi import APIRouter

from myway.api.assignments import router as assignments_router
from myway.api.auth import router as auth_router
from myway.api.courses import router as courses_router
from myway.api.discussions import router as discussions_router
from myway.api.health import router as health_router
from myway.api.organizations import router as organizations_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(organizations_router, tags=["organizations"])
api_router.include_router(courses_router, tags=["courses", "modules", "materials"])
api_router.include_router(assignments_router, tags=["assignments", "submissions"])
api_router.include_router(discussions_router, tags=["discussions"])
