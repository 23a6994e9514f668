"""
API v1 main router
"""

from fastapi import APIRouter

from app.api.v1.endpoints import events, jobs, projects, tasks

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
api_router.include_router(projects.router, prefix="/projects", tags=["Projects"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["Jobs"])
api_router.include_router(events.router, prefix="/events", tags=["Realtime"])
