"""
Project endpoints
"""

from fastapi import APIRouter, Depends, status

from app.api.deps import get_project_store
from app.models.project import ProjectCreate, ProjectRead, ProjectUpdate
from app.services.project_store import ProjectStore

router = APIRouter()


@router.get("/", response_model=list[ProjectRead])
async def get_projects(
    store: ProjectStore = Depends(get_project_store),
):
    """
    Retrieve all projects (ordered by name, with task counts)
    """
    return await store.list()


@router.get("/{project_id}", response_model=ProjectRead, responses={404: {"description": "Project not found"}})
async def get_project(
    project_id: str,
    store: ProjectStore = Depends(get_project_store),
):
    """
    Get project by ID
    """
    return await store.get(project_id)


@router.post(
    "/",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Project name is empty"}},
)
async def create_project(
    project_data: ProjectCreate,
    store: ProjectStore = Depends(get_project_store),
):
    """
    Create new project
    """
    return await store.create(project_data)


@router.patch(
    "/{project_id}",
    response_model=ProjectRead,
    responses={
        400: {"description": "Empty update or empty name"},
        404: {"description": "Project not found"},
    },
)
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    store: ProjectStore = Depends(get_project_store),
):
    """
    Update project
    """
    return await store.update(project_id, project_data)


@router.delete(
    "/{project_id}", status_code=status.HTTP_204_NO_CONTENT, responses={404: {"description": "Project not found"}}
)
async def delete_project(
    project_id: str,
    store: ProjectStore = Depends(get_project_store),
):
    """
    Delete project; its tasks are kept and become unassigned
    """
    await store.delete(project_id)
    return None
