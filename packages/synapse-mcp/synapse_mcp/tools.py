"""
Tool handlers exposing the Synapse engine.

Each handler returns a JSON-safe dict. Invalid input and unknown task IDs are
reported as {"error": ...} rather than raised, so agents get a readable reply.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Optional, List

from synapse.config import ViewConfig
from synapse.models.dates import parse_datetime
from synapse.services.tasks import TaskStore
from synapse.services.views import ViewEngine, ViewPreferences

logger = logging.getLogger(__name__)


class SynapseTools:
    """Async handlers backing the MCP tools, bound to one TaskStore."""

    def __init__(
        self,
        store: TaskStore,
        views: Optional[ViewEngine] = None,
        defaults: Optional[ViewConfig] = None,
    ):
        self.store = store
        self.views = views or ViewEngine()
        self.defaults = defaults or ViewConfig()
        self._loaded = False
        self._load_lock = asyncio.Lock()

    async def ensure_loaded(self) -> None:
        """Load persisted state once, on first use."""
        if self._loaded:
            return
        async with self._load_lock:
            if not self._loaded:
                await self.store.load()
                self._loaded = True

    async def task_create(
        self,
        title: str,
        description: str = "",
        priority: str = "medium",
        due_at: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> dict:
        await self.ensure_loaded()
        try:
            task = await self.store.create(
                title=title,
                description=description,
                priority=priority,
                due_at=parse_datetime(due_at),
                tags=tags,
            )
        except ValueError as e:
            return {"error": str(e)}
        return task.to_dict()

    async def task_show(self, task_id: str) -> dict:
        await self.ensure_loaded()
        task = self.store.get(task_id)
        if not task:
            return {"error": f"Task not found: {task_id}"}
        return task.to_dict()

    async def task_update(
        self,
        task_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        priority: Optional[str] = None,
        status: Optional[str] = None,
        due_at: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> dict:
        await self.ensure_loaded()
        task = self.store.get(task_id)
        if not task:
            return {"error": f"Task not found: {task_id}"}

        changes = {}
        if title is not None:
            changes["title"] = title
        if description is not None:
            changes["description"] = description
        if priority is not None:
            changes["priority"] = priority
        if tags is not None:
            changes["tags"] = tags
        if status is not None:
            changes["status"] = status
            # Keep completed_at in step with the status
            if status == "completed" and task.completed_at is None:
                changes["completed_at"] = self.store.now()
            elif status != "completed":
                changes["completed_at"] = None

        try:
            if due_at is not None:
                changes["due_at"] = parse_datetime(due_at)
            updated = await self.store.update(replace(task, **changes))
        except ValueError as e:
            return {"error": str(e)}

        if not updated:
            return {"error": f"Task not found: {task_id}"}
        return updated.to_dict()

    async def task_complete(self, task_id: str) -> dict:
        await self.ensure_loaded()
        task = self.store.get(task_id)
        if not task:
            return {"error": f"Task not found: {task_id}"}

        updated = await self.store.complete(task)
        return updated.to_dict() if updated else {"error": f"Task not found: {task_id}"}

    async def task_toggle(self, task_id: str) -> dict:
        await self.ensure_loaded()
        task = self.store.get(task_id)
        if not task:
            return {"error": f"Task not found: {task_id}"}

        updated = await self.store.toggle_completion(task)
        return updated.to_dict() if updated else {"error": f"Task not found: {task_id}"}

    async def task_delete(self, task_id: str) -> dict:
        await self.ensure_loaded()
        deleted = await self.store.delete(task_id)
        if not deleted:
            return {"error": f"Task not found: {task_id}"}
        return {"deleted": True, "id": task_id}

    async def task_list(
        self,
        filter: Optional[str] = None,
        sort: Optional[str] = None,
        search: str = "",
        show_completed: Optional[bool] = None,
    ) -> dict:
        await self.ensure_loaded()
        try:
            prefs = ViewPreferences(
                filter=filter or self.defaults.filter,
                sort=sort or self.defaults.sort,
                search_query=search,
                show_completed=self.defaults.show_completed if show_completed is None else show_completed,
            )
        except ValueError as e:
            return {"error": str(e)}

        tasks = self.views.filtered_view(self.store.snapshot().tasks, prefs)
        return {
            "tasks": [t.to_dict() for t in tasks],
            "count": len(tasks),
            "filter": prefs.filter,
            "sort": prefs.sort,
        }

    async def task_search(self, query: str) -> dict:
        await self.ensure_loaded()
        tasks = self.views.search(query, self.store.snapshot().tasks)
        return {
            "tasks": [t.to_dict() for t in tasks],
            "count": len(tasks),
            "query": query,
        }

    async def stats_get(self) -> dict:
        await self.ensure_loaded()
        snap = self.store.snapshot()
        result = snap.stats.to_dict()
        result["completion_rate"] = snap.stats.completion_rate
        result["summary"] = self.views.summary(snap.tasks)
        return result

    async def suggestions_get(self, limit: Optional[int] = None) -> dict:
        await self.ensure_loaded()
        snap = self.store.snapshot()
        suggestions = self.views.smart_suggestions(snap.stats, snap.tasks)
        if limit is not None:
            suggestions = suggestions[:limit]
        return {"suggestions": suggestions, "count": len(suggestions)}

    async def data_reset(self, confirm: bool = False) -> dict:
        if not confirm:
            return {"error": "Reset not confirmed. Call again with confirm=true."}
        await self.ensure_loaded()
        await self.store.reset()
        return {"status": "reset"}

    async def health(self) -> dict:
        adapter = self.store.adapter
        try:
            await adapter.keys()
            connected = True
        except Exception as e:
            connected = False
            logger.error(f"Health check failed: {e}")

        return {
            "status": "healthy" if connected else "unhealthy",
            "storage_type": adapter.storage_type,
            "strict_persistence": self.store.strict_persistence,
        }
