"""
Task Store for Synapse.

Sole owner of the task collection and the UserStats ledger. Every mutation
updates statistics as a side effect, persists through a StorageAdapter and
publishes a fresh snapshot to subscribers.
"""

import asyncio
import copy
import inspect
import json
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union

from synapse.db.interface import StorageAdapter, StorageError
from synapse.models.stats import UserStats
from synapse.models.task import TASK_PRIORITIES, TASK_STATUSES, Task
from synapse.services import stats as stats_rules

logger = logging.getLogger(__name__)

TASKS_KEY = "synapse_tasks"
STATS_KEY = "synapse_stats"

SCHEMA_VERSION = 1

# Tasks enter the store open
INITIAL_STATUSES = ("pending", "in_progress")


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time copy of the task collection and statistics."""

    tasks: tuple
    stats: UserStats


Subscriber = Callable[[Snapshot], Union[None, Awaitable[None]]]


def encode_document(data: Any) -> str:
    """Wrap a JSON-safe value in the versioned storage envelope."""
    return json.dumps({"schema_version": SCHEMA_VERSION, "data": data})


def decode_document(raw: str) -> Any:
    """
    Unwrap a stored document.

    Payloads without an envelope predate versioning and are returned as-is.

    Raises:
        ValueError: If the payload is not JSON or has an unknown version
    """
    payload = json.loads(raw)
    if isinstance(payload, dict) and "schema_version" in payload:
        version = payload["schema_version"]
        if version != SCHEMA_VERSION:
            raise ValueError(f"Unsupported schema version: {version}")
        return payload.get("data")
    return payload


class TaskStore:
    """
    Store for tasks and productivity statistics.

    Mutations are serialized with an asyncio lock so the read-modify-write
    statistics updates never interleave. Readers get deep-copied snapshots.
    """

    def __init__(
        self,
        adapter: StorageAdapter,
        clock: Optional[Callable[[], datetime]] = None,
        strict_persistence: bool = False,
    ):
        """
        Initialize the task store.

        Args:
            adapter: Connected (or lazily connecting) StorageAdapter
            clock: Returns the current local time. Defaults to datetime.now
            strict_persistence: Raise StorageError on failed writes instead of
                logging and keeping the in-memory state
        """
        self.adapter = adapter
        self._clock = clock or datetime.now
        self.strict_persistence = strict_persistence

        self._tasks: list[Task] = []
        self._stats = UserStats()
        self._lock = asyncio.Lock()
        self._subscribers: list[Subscriber] = []

    # ---- lifecycle ----

    async def load(self) -> Snapshot:
        """Load tasks and stats from storage, falling back to empty defaults."""
        async with self._lock:
            self._tasks = await self._load_tasks()
            self._stats = await self._load_stats()
            self._stats.productivity_score = stats_rules.compute_productivity_score(self._stats)
            logger.info(
                f"Loaded {len(self._tasks)} tasks "
                f"(created={self._stats.total_tasks_created}, completed={self._stats.total_tasks_completed})"
            )
            return self.snapshot()

    async def close(self) -> None:
        await self.adapter.close()

    async def _load_tasks(self) -> list[Task]:
        raw = await self._read(TASKS_KEY)
        if raw is None:
            return []
        try:
            data = decode_document(raw)
            return [Task.from_dict(item) for item in data]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Discarding unreadable task collection: {e}")
            return []

    async def _load_stats(self) -> UserStats:
        raw = await self._read(STATS_KEY)
        if raw is None:
            return UserStats()
        try:
            return UserStats.from_dict(decode_document(raw))
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Discarding unreadable stats: {e}")
            return UserStats()

    async def _read(self, key: str) -> Optional[str]:
        try:
            return await self.adapter.get(key)
        except StorageError as e:
            logger.warning(f"Could not read {key}, starting from defaults: {e}")
            return None

    # ---- reads ----

    def now(self) -> datetime:
        """Current time according to the store clock."""
        return self._clock()

    def snapshot(self) -> Snapshot:
        """Return an immutable copy of the current state."""
        return Snapshot(
            tasks=tuple(copy.deepcopy(self._tasks)),
            stats=copy.deepcopy(self._stats),
        )

    @property
    def tasks(self) -> list[Task]:
        """Copy of the task collection."""
        return copy.deepcopy(self._tasks)

    @property
    def stats(self) -> UserStats:
        """Copy of the statistics."""
        return copy.deepcopy(self._stats)

    def get(self, task_id: str) -> Optional[Task]:
        """Get a copy of a task by ID."""
        index = self._index_of(task_id)
        if index is None:
            return None
        return copy.deepcopy(self._tasks[index])

    def get_tasks_by_status(self, status: str) -> list[Task]:
        return [copy.deepcopy(t) for t in self._tasks if t.status == status]

    def get_tasks_by_priority(self, priority: str) -> list[Task]:
        return [copy.deepcopy(t) for t in self._tasks if t.priority == priority]

    def _index_of(self, task_id: str) -> Optional[int]:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        return None

    # ---- subscriptions ----

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback receiving a Snapshot after every mutation.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def _publish(self) -> Snapshot:
        snap = self.snapshot()
        for callback in list(self._subscribers):
            try:
                result = callback(snap)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Snapshot subscriber {callback!r} failed")
        return snap

    # ---- mutations ----

    async def create(
        self,
        title: str,
        description: str = "",
        priority: str = "medium",
        status: str = "pending",
        due_at: datetime | None = None,
        tags: list[str] | None = None,
        automation_triggers: list | None = None,
        schedule=None,
        is_recurring: bool = False,
        recurrence_rule=None,
        calendar_event_id: str | None = None,
    ) -> Task:
        """
        Create a new task.

        Args:
            title: Task title (not validated)
            description: Task description
            priority: Priority (low, medium, high, urgent)
            status: Initial status (pending, in_progress); completing or
                cancelling goes through update() so the ledger records it
            due_at: Optional due date
            tags: List of tags
            automation_triggers: AutomationTrigger configurations
            schedule: Optional TaskSchedule
            is_recurring: Whether the task repeats
            recurrence_rule: Optional RecurrenceRule
            calendar_event_id: External calendar event reference

        Returns:
            Created Task object
        """
        if status not in INITIAL_STATUSES:
            raise ValueError(f"Invalid initial status. Must be one of: {', '.join(INITIAL_STATUSES)}")
        if priority not in TASK_PRIORITIES:
            raise ValueError(f"Invalid priority. Must be one of: {', '.join(TASK_PRIORITIES)}")

        async with self._lock:
            task = Task(
                title=title,
                description=description or "",
                priority=priority,
                status=status,
                created_at=self._clock(),
                due_at=due_at,
                tags=list(tags or []),
                automation_triggers=list(automation_triggers or []),
                schedule=schedule,
                is_recurring=is_recurring,
                recurrence_rule=recurrence_rule,
                calendar_event_id=calendar_event_id,
            )

            self._tasks.append(task)
            self._stats.total_tasks_created += 1
            self._refresh_score()

            await self._save_tasks()
            await self._save_stats()

            logger.info(f"Created task: {task.id} - {task.title}")
            await self._publish()
            return copy.deepcopy(task)

    async def update(self, task: Task) -> Task | None:
        """
        Replace a stored task and apply status transition side effects.

        Args:
            task: Task carrying the ID of a stored task and its new contents

        Returns:
            The stored Task, or None if no task has that ID
        """
        if task.status not in TASK_STATUSES:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(TASK_STATUSES)}")
        if task.priority not in TASK_PRIORITIES:
            raise ValueError(f"Invalid priority. Must be one of: {', '.join(TASK_PRIORITIES)}")

        async with self._lock:
            index = self._index_of(task.id)
            if index is None:
                logger.debug(f"Update ignored, task not found: {task.id}")
                return None

            old = self._tasks[index]
            new = copy.deepcopy(task)
            self._tasks[index] = new

            if old.status != "completed" and new.status == "completed":
                stats_rules.record_completion(self._stats, new, old.created_at, self._clock())
                logger.info(f"Completed task: {new.id} (streak={self._stats.current_streak})")
            elif old.status != "cancelled" and new.status == "cancelled":
                stats_rules.record_cancellation(self._stats)
                logger.info(f"Cancelled task: {new.id}")

            self._refresh_score()
            await self._save_tasks()
            await self._save_stats()

            await self._publish()
            return copy.deepcopy(new)

    async def delete(self, task: Union[Task, str]) -> bool:
        """
        Permanently remove a task. Statistics already recorded are kept.

        Args:
            task: Task or task ID

        Returns:
            True if a task was removed
        """
        task_id = task.id if isinstance(task, Task) else task

        async with self._lock:
            before = len(self._tasks)
            self._tasks = [t for t in self._tasks if t.id != task_id]
            if len(self._tasks) == before:
                logger.debug(f"Delete ignored, task not found: {task_id}")
                return False

            await self._save_tasks()

            logger.info(f"Deleted task: {task_id}")
            await self._publish()
            return True

    async def complete(self, task: Task) -> Task | None:
        """Mark a task as completed now."""
        return await self.update(replace(task, status="completed", completed_at=self._clock()))

    async def toggle_completion(self, task: Task) -> Task | None:
        """Flip a task between completed and pending."""
        if task.status == "completed":
            return await self.update(replace(task, status="pending", completed_at=None))
        return await self.complete(task)

    async def reset(self) -> None:
        """Remove all tasks and statistics, in memory and in storage."""
        async with self._lock:
            self._tasks = []
            self._stats = UserStats()

            for key in (TASKS_KEY, STATS_KEY):
                try:
                    await self.adapter.delete(key)
                except StorageError as e:
                    self._persistence_failed(f"Could not clear {key}", e)

            logger.info("All tasks and statistics reset")
            await self._publish()

    # ---- persistence ----

    def _refresh_score(self) -> None:
        self._stats.productivity_score = stats_rules.compute_productivity_score(self._stats)

    async def _save_tasks(self) -> None:
        await self._write(TASKS_KEY, [t.to_dict() for t in self._tasks])

    async def _save_stats(self) -> None:
        await self._write(STATS_KEY, self._stats.to_dict())

    async def _write(self, key: str, data: Any) -> None:
        try:
            await self.adapter.set(key, encode_document(data))
        except (StorageError, TypeError, ValueError) as e:
            self._persistence_failed(f"Could not save {key}", e)

    def _persistence_failed(self, message: str, error: Exception) -> None:
        if self.strict_persistence:
            if isinstance(error, StorageError):
                raise error
            raise StorageError(f"{message}: {error}") from error
        logger.warning(f"{message}, keeping in-memory state: {error}")
