"""Top-level API router."""

from fastapi import APIRouter

from budget_tracker.api.routes.health import router as health_router
from budget_tracker.api.routes.invoices import router as invoices_router
from budget_tracker.api.routes.me import router as me_router
from budget_tracker.api.routes.phases import router as phases_router
from budget_tracker.api.routes.projects import router as projects_router
from budget_tracker.api.routes.tasks import router as tasks_router
from budget_tracker.api.routes.time_entries import router as time_entries_router
from budget_tracker.api.routes.users import router as users_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(me_router)
api_router.include_router(users_router)
api_router.include_router(projects_router)
api_router.include_router(phases_router)
api_router.include_router(tasks_router)
api_router.include_router(time_entries_router)
api_router.include_router(invoices_router)
