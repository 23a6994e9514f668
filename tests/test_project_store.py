"""
Test project store
"""

import pytest

from app.core.errors import NotFoundError, ValidationError
from app.core.events import TaskUpdated
from app.models.project import ProjectCreate, ProjectStatus, ProjectUpdate
from app.models.task import TaskFilters, TaskStatus, TaskStatusFilter, TaskUpdate
from app.services.project_store import ProjectStore
from app.services.task_store import TaskStore


@pytest.mark.asyncio
async def test_create_trims_name_and_defaults_status(project_store: ProjectStore):
    project = await project_store.create(ProjectCreate(name="  Home  "))

    assert project.name == "Home"
    assert project.status == ProjectStatus.OPEN
    assert project.task_count == 0


@pytest.mark.asyncio
async def test_create_rejects_blank_name(project_store: ProjectStore):
    with pytest.raises(ValidationError):
        await project_store.create(ProjectCreate(name="   "))


@pytest.mark.asyncio
async def test_list_is_ordered_by_name_with_task_counts(project_store: ProjectStore, make_task, task_store: TaskStore):
    work = await project_store.create(ProjectCreate(name="Work"))
    home = await project_store.create(ProjectCreate(name="Home"))
    await make_task("a", project_id=work.id)
    done = await make_task("b", project_id=work.id)
    await task_store.update(done.id, TaskUpdate(status=TaskStatus.COMPLETED))

    projects = await project_store.list()

    assert [p.name for p in projects] == ["Home", "Work"]
    assert [p.task_count for p in projects] == [0, 2]
    assert (await project_store.get(home.id)).task_count == 0


@pytest.mark.asyncio
async def test_get_missing_project(project_store: ProjectStore):
    with pytest.raises(NotFoundError):
        await project_store.get("missing")


@pytest.mark.asyncio
async def test_update_is_partial(project_store: ProjectStore):
    project = await project_store.create(ProjectCreate(name="Garden", description="spring work"))

    updated = await project_store.update(project.id, ProjectUpdate(status=ProjectStatus.IN_PROGRESS))

    assert updated.status == ProjectStatus.IN_PROGRESS
    assert updated.name == "Garden"
    assert updated.description == "spring work"


@pytest.mark.asyncio
async def test_update_rejects_empty_payload_and_blank_name(project_store: ProjectStore):
    project = await project_store.create(ProjectCreate(name="Garden"))

    with pytest.raises(ValidationError):
        await project_store.update(project.id, ProjectUpdate())
    with pytest.raises(ValidationError):
        await project_store.update(project.id, ProjectUpdate(name="  "))
    with pytest.raises(ValidationError):
        await project_store.update(project.id, ProjectUpdate.model_validate({"status": None}))


@pytest.mark.asyncio
async def test_delete_unassigns_tasks(project_store: ProjectStore, task_store: TaskStore, make_task):
    project = await project_store.create(ProjectCreate(name="Move house"))
    first = await make_task("Pack", project_id=project.id)
    second = await make_task("Label boxes", project_id=project.id)

    unassigned = await project_store.delete(project.id)

    assert unassigned == 2
    for task_id in (first.id, second.id):
        task = await task_store.get(task_id)
        assert task.project_id is None
        assert task.project is None
    assert len(await task_store.list(TaskFilters(status=TaskStatusFilter.ALL))) == 2
    with pytest.raises(NotFoundError):
        await project_store.get(project.id)


@pytest.mark.asyncio
async def test_owner_scope_hides_other_projects(db_session, event_bus):
    alice = ProjectStore(db_session, event_bus, owner_id="alice")
    bob = ProjectStore(db_session, event_bus, owner_id="bob")

    project = await alice.create(ProjectCreate(name="Private"))

    assert [p.id for p in await alice.list()] == [project.id]
    assert await bob.list() == []
    with pytest.raises(NotFoundError):
        await bob.delete(project.id)


@pytest.mark.asyncio
async def test_delete_publishes_update_for_each_unassigned_task(project_store: ProjectStore, make_task, published):
    project = await project_store.create(ProjectCreate(name="Move house"))
    first = await make_task("Pack", project_id=project.id)
    second = await make_task("Label boxes", project_id=project.id)
    await make_task("Unrelated")
    published.clear()

    await project_store.delete(project.id)

    assert all(isinstance(event, TaskUpdated) for event in published)
    assert {event.task.id for event in published} == {first.id, second.id}
    assert all(event.task.project_id is None and event.task.project is None for event in published)


@pytest.mark.asyncio
async def test_delete_empty_project_publishes_nothing(project_store: ProjectStore, published):
    project = await project_store.create(ProjectCreate(name="Empty"))

    assert await project_store.delete(project.id) == 0
    assert published == []


@pytest.mark.asyncio
async def test_rename_publishes_update_for_each_task(project_store: ProjectStore, make_task, published):
    project = await project_store.create(ProjectCreate(name="Garden"))
    task = await make_task("Plant roses", project_id=project.id)
    published.clear()

    await project_store.update(project.id, ProjectUpdate(name="Backyard"))

    assert [event.kind for event in published] == ["updated"]
    assert published[0].task.id == task.id
    assert published[0].task.project.name == "Backyard"


@pytest.mark.asyncio
async def test_description_change_publishes_nothing(project_store: ProjectStore, make_task, published):
    project = await project_store.create(ProjectCreate(name="Garden"))
    await make_task("Plant roses", project_id=project.id)
    published.clear()

    await project_store.update(project.id, ProjectUpdate(description="spring"))
    await project_store.update(project.id, ProjectUpdate(name="Garden"))

    assert published == []
