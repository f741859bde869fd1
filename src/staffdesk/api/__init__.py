"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied per route (Depends(get_current_staff)) rather than
per router, because login and logout live under the same prefix as the
protected profile routes.
"""

from fastapi import APIRouter

from staffdesk.api.health import router as health_router
from staffdesk.api.office_staff import router as office_staff_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(office_staff_router, tags=["office-staff"])
