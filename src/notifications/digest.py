"""
Due-Date Digest Builder

Walks tenants -> projects -> due tasks and groups qualifying tasks by
assignee. Grouping restarts at every tenant boundary: a user assigned in two
tenants receives one digest per tenant, never one merged digest.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional

from .models import Project, Task, Tenant
from .recipients import RelativeDay, ReminderWindow
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


@dataclass
class DigestTask:
    """One line of a digest email."""
    task_id: str
    title: str
    project_id: str
    project_title: str
    due_date: datetime
    status: Optional[str]
    relative_day: RelativeDay

    @property
    def is_due_today(self) -> bool:
        return self.relative_day == RelativeDay.TODAY


@dataclass
class TenantDigest:
    """All digests of one tenant for one run, keyed by assignee."""
    tenant: Tenant
    tasks_by_assignee: Dict[str, List[DigestTask]] = field(default_factory=dict)
    failed_projects: int = 0
    error: Optional[str] = None

    @property
    def task_count(self) -> int:
        return sum(len(tasks) for tasks in self.tasks_by_assignee.values())

    @property
    def failures(self) -> int:
        """Failed project queries, plus one when the whole tenant failed."""
        return self.failed_projects + (1 if self.error else 0)


class DigestBuilder:
    """Builds per-tenant digests for the scheduled reminder run."""

    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    def _digest_task(self, task: Task, project: Project, window: ReminderWindow) -> DigestTask:
        return DigestTask(
            task_id=task.id,
            title=task.title,
            project_id=project.id,
            project_title=project.title,
            due_date=task.due_date,
            status=task.status,
            relative_day=window.relative_day(task.due_date),
        )

    async def build_tenant_digest(self, tenant: Tenant, window: ReminderWindow) -> TenantDigest:
        """
        Collect qualifying tasks of every project in one tenant.

        A project whose task query fails is logged and skipped.
        """
        digest = TenantDigest(tenant=tenant)

        for project in await self.repository.list_projects(tenant.id):
            try:
                tasks = await self.repository.query_tasks(tenant.id, project.id, window.filters())
            except Exception as e:
                digest.failed_projects += 1
                logger.exception(
                    f"Due task query failed for project {project.id} in tenant {tenant.id}: {e}"
                )
                continue

            for task in tasks:
                if not task.assigned_to or not window.is_qualifying(task):
                    continue
                digest.tasks_by_assignee.setdefault(task.assigned_to, []).append(
                    self._digest_task(task, project, window)
                )

        logger.debug(
            f"Tenant {tenant.id}: {digest.task_count} due tasks "
            f"for {len(digest.tasks_by_assignee)} assignees"
        )
        return digest

    async def iter_tenant_digests(self, window: ReminderWindow) -> AsyncIterator[TenantDigest]:
        """
        Yield one digest per tenant.

        A tenant whose digest cannot be built is logged and yielded empty,
        with ``error`` set.
        """
        for tenant in await self.repository.list_tenants():
            try:
                digest = await self.build_tenant_digest(tenant, window)
            except Exception as e:
                logger.exception(f"Building due-date digest failed for tenant {tenant.id}: {e}")
                digest = TenantDigest(tenant=tenant, error=str(e))
            yield digest
