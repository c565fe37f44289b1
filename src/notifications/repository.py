"""
Notification Document Repository

Typed, read-mostly access to the documents the notification engine needs.
The only write path is delivery state on invite documents.

Layout:
    users/{userId}
    invites/{inviteId}
    tenants/{tenantId}
    tenants/{tenantId}/projects/{projectId}
    tenants/{tenantId}/projects/{projectId}/tasks/{taskId}
    tenants/{tenantId}/projects/{projectId}/tasks/{taskId}/comments/{commentId}
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from datastore import DocumentStore, FieldFilter, collection_path

from .models import Invite, Project, Task, Tenant, User

logger = logging.getLogger(__name__)

USERS = "users"
INVITES = "invites"
TENANTS = "tenants"


def projects_path(tenant_id: str) -> str:
    return collection_path(TENANTS, tenant_id, "projects")


def tasks_path(tenant_id: str, project_id: str) -> str:
    return collection_path(TENANTS, tenant_id, "projects", project_id, "tasks")


class NotificationRepository:
    """Lookups over the document store, returning domain models."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def _get(self, model, collection: str, doc_id: Optional[str]):
        if not doc_id:
            return None
        snapshot = await self.store.get(collection, doc_id)
        if snapshot is None or not snapshot.exists:
            return None
        return model.from_document(snapshot.id, snapshot.data)

    async def get_user(self, user_id: Optional[str]) -> Optional[User]:
        return await self._get(User, USERS, user_id)

    async def get_invite(self, invite_id: str) -> Optional[Invite]:
        return await self._get(Invite, INVITES, invite_id)

    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        return await self._get(Tenant, TENANTS, tenant_id)

    async def get_project(self, tenant_id: str, project_id: str) -> Optional[Project]:
        project = await self._get(Project, projects_path(tenant_id), project_id)
        if project is not None and project.tenant_id is None:
            project.tenant_id = tenant_id
        return project

    async def get_task(self, tenant_id: str, project_id: str, task_id: str) -> Optional[Task]:
        return await self._get(Task, tasks_path(tenant_id, project_id), task_id)

    async def list_tenants(self) -> List[Tenant]:
        return [Tenant.from_document(s.id, s.data) for s in await self.store.query(TENANTS)]

    async def list_projects(self, tenant_id: str) -> List[Project]:
        projects = []
        for snapshot in await self.store.query(projects_path(tenant_id)):
            project = Project.from_document(snapshot.id, snapshot.data)
            if project.tenant_id is None:
                project.tenant_id = tenant_id
            projects.append(project)
        return projects

    async def query_tasks(
        self,
        tenant_id: str,
        project_id: str,
        filters: Sequence[FieldFilter] = (),
    ) -> List[Task]:
        """
        Tasks of one project matching every filter.

        A malformed task document is logged and left out of the result.
        """
        snapshots = await self.store.query(tasks_path(tenant_id, project_id), filters)
        tasks = []
        for snapshot in snapshots:
            try:
                task = Task.from_document(snapshot.id, snapshot.data)
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed task {snapshot.path}: {e}",
                    extra={"extra_data": {"tenant_id": tenant_id, "project_id": project_id}},
                )
                continue
            if task.project_id is None:
                task.project_id = project_id
            tasks.append(task)
        return tasks

    async def update_invite(self, invite_id: str, fields: Dict[str, Any]) -> None:
        await self.store.update(INVITES, invite_id, fields)
