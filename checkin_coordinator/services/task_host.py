# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Host task subsystem.
TaskHost is the capability the job runner registers against; LocalTaskHost
provides it in-process with an APScheduler AsyncIOScheduler.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.models.domain import Task

logger = get_logger(__name__)

Worker = Callable[[dict[str, Any]], Awaitable[Any]]


class TaskHost(Protocol):
    def is_ready(self) -> bool: ...

    def register_worker(self, name: str, execute: Worker) -> None: ...

    async def create_periodic_task(self, name: str, interval_millis: int, tags: list[str]) -> Task: ...

    async def list_tasks(self, tags: list[str]) -> list[Task]: ...

    async def delete_task(self, task_id: str) -> None: ...


class LocalTaskHost:
    """In-process task subsystem. Ready once the scheduler is running."""

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None) -> None:
        self._scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self._workers: dict[str, Worker] = {}
        self._tasks: dict[str, Task] = {}

    # ── Lifecycle ──

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Task host started")

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Task host stopped")

    def is_ready(self) -> bool:
        return self._scheduler.running

    # ── TaskHost ──

    def register_worker(self, name: str, execute: Worker) -> None:
        self._workers[name] = execute
        logger.info("Task worker registered: %s", name)

    async def create_periodic_task(self, name: str, interval_millis: int, tags: list[str]) -> Task:
        if name not in self._workers:
            raise KeyError(f"No worker registered for task '{name}'")
        task = Task(
            id=str(uuid.uuid4()),
            name=name,
            tags=list(tags),
            interval_millis=interval_millis,
        )
        self._scheduler.add_job(
            self._run,
            trigger="interval",
            seconds=interval_millis / 1000,
            id=task.id,
            args=[task.id],
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._tasks[task.id] = task
        logger.info("Periodic task created: %s every %dms tags=%s", name, interval_millis, tags)
        return task

    async def list_tasks(self, tags: list[str]) -> list[Task]:
        wanted = set(tags)
        return [t for t in self._tasks.values() if wanted.issubset(t.tags)]

    async def delete_task(self, task_id: str) -> None:
        self._tasks.pop(task_id, None)
        try:
            self._scheduler.remove_job(task_id)
        except JobLookupError:
            pass
        logger.info("Periodic task deleted: %s", task_id)

    # ── Internal ──

    async def _run(self, task_id: str) -> None:
        task = self._tasks.get(task_id)
        if task is None:
            return
        worker = self._workers.get(task.name)
        if worker is None:
            logger.warning("No worker for task %s", task.name)
            return
        task.last_run_at = datetime.now(timezone.utc)
        await worker({"task": task})
