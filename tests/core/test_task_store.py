"""
Tests for TaskStore.
"""

import json
import pytest
import tempfile
from dataclasses import replace
from datetime import timedelta
from pathlib import Path

from synapse.db.interface import StorageError
from synapse.db.memory import MemoryAdapter
from synapse.services.tasks import STATS_KEY, TASKS_KEY, TaskStore


class FailingAdapter(MemoryAdapter):
    """Memory adapter whose writes always fail."""

    async def set(self, key, value):
        raise StorageError("disk full")


class TestTaskStoreCreate:
    """Tests for TaskStore.create()."""

    @pytest.mark.asyncio
    async def test_create_task_minimal(self, store, clock):
        """Test creating a task with minimal data."""
        task = await store.create(title="Test task")

        assert task.title == "Test task"
        assert task.status == "pending"
        assert task.priority == "medium"
        assert task.created_at == clock.now
        assert task.id is not None
        assert store.stats.total_tasks_created == 1

    @pytest.mark.asyncio
    async def test_create_task_full(self, store, sample_task_data):
        """Test creating a task with all basic fields."""
        task = await store.create(**sample_task_data)

        assert task.title == "Test Task"
        assert task.description == "A test task description"
        assert task.tags == ["test", "sample"]
        assert store.get(task.id) == task

    @pytest.mark.asyncio
    async def test_create_assigns_unique_ids(self, store):
        ids = {(await store.create(title=f"Task {i}")).id for i in range(20)}

        assert len(ids) == 20
        assert store.stats.total_tasks_created == 20

    @pytest.mark.asyncio
    async def test_create_allows_empty_title(self, store):
        task = await store.create(title="")

        assert task.title == ""

    @pytest.mark.asyncio
    async def test_create_task_invalid_priority(self, store):
        """Test that invalid priority raises error."""
        with pytest.raises(ValueError) as exc:
            await store.create(title="Test", priority="super-high")

        assert "Invalid priority" in str(exc.value)
        assert store.stats.total_tasks_created == 0

    @pytest.mark.asyncio
    async def test_create_rejects_closed_status(self, store):
        """Tasks cannot be created already completed or cancelled."""
        for status in ("completed", "cancelled"):
            with pytest.raises(ValueError) as exc:
                await store.create(title="Done already", status=status)

            assert "Invalid initial status" in str(exc.value)

        assert store.tasks == []
        assert store.stats.total_tasks_created == 0
        assert store.stats.total_tasks_completed == 0

    @pytest.mark.asyncio
    async def test_create_persists_tasks_and_stats(self, store, memory_adapter):
        await store.create(title="Persisted")

        tasks_doc = json.loads(await memory_adapter.get(TASKS_KEY))
        stats_doc = json.loads(await memory_adapter.get(STATS_KEY))

        assert tasks_doc["schema_version"] == 1
        assert tasks_doc["data"][0]["title"] == "Persisted"
        assert stats_doc["data"]["total_tasks_created"] == 1


class TestTaskStoreUpdate:
    """Tests for TaskStore.update() and status side effects."""

    @pytest.mark.asyncio
    async def test_update_fields(self, store):
        task = await store.create(title="Old")

        updated = await store.update(replace(task, title="New", priority="high"))

        assert updated.title == "New"
        assert store.get(task.id).priority == "high"

    @pytest.mark.asyncio
    async def test_update_unknown_task_is_noop(self, store):
        from synapse.models.task import Task

        await store.create(title="Existing")

        result = await store.update(Task(title="Ghost"))

        assert result is None
        assert len(store.tasks) == 1

    @pytest.mark.asyncio
    async def test_complete_updates_stats(self, store, clock):
        """Test first completion: counters, tags, streak and exact running mean."""
        task = await store.create(title="Report", tags=["work", "writing"])

        clock.advance(hours=2)
        await store.complete(task)

        stats = store.stats
        assert stats.total_tasks_completed == 1
        assert stats.most_used_tags == {"work": 1, "writing": 1}
        assert stats.current_streak == 1
        assert stats.average_completion_time == 7200.0
        assert stats.last_activity_at == clock.now

        stored = store.get(task.id)
        assert stored.status == "completed"
        assert stored.completed_at == clock.now

    @pytest.mark.asyncio
    async def test_latency_uses_stored_created_date(self, store, clock):
        task = await store.create(title="T")
        clock.advance(hours=1)

        # A caller-supplied created_at must not skew the latency
        tampered = replace(task, created_at=task.created_at - timedelta(days=10))
        await store.complete(tampered)

        assert store.stats.average_completion_time == 3600.0

    @pytest.mark.asyncio
    async def test_toggle_does_not_double_count(self, store, clock):
        task = await store.create(title="Flip", tags=["x"])
        clock.advance(minutes=10)

        done = await store.toggle_completion(task)
        assert done.status == "completed"
        assert store.stats.total_tasks_completed == 1

        # Staying completed
        await store.update(replace(done, title="Flip!"))
        assert store.stats.total_tasks_completed == 1

        undone = await store.toggle_completion(store.get(task.id))
        assert undone.status == "pending"
        assert undone.completed_at is None
        assert store.stats.total_tasks_completed == 1

        clock.advance(minutes=10)
        await store.toggle_completion(undone)
        assert store.stats.total_tasks_completed == 2
        assert store.stats.most_used_tags == {"x": 2}

    @pytest.mark.asyncio
    async def test_cancel_counts_once(self, store):
        task = await store.create(title="Nope", tags=["x"])

        cancelled = await store.update(replace(task, status="cancelled"))
        await store.update(replace(cancelled, description="still cancelled"))

        stats = store.stats
        assert stats.total_tasks_cancelled == 1
        assert stats.total_tasks_completed == 0
        assert stats.most_used_tags == {}
        assert stats.current_streak == 0

    @pytest.mark.asyncio
    async def test_streak_across_days(self, store, clock):
        for _ in range(3):
            task = await store.create(title="Daily")
            clock.advance(minutes=5)
            await store.complete(task)
            clock.advance(days=1)

        assert store.stats.current_streak == 3
        assert store.stats.longest_streak == 3

        # Same day completion after the streak
        clock.advance(days=-1, hours=1)
        task = await store.create(title="Extra")
        await store.complete(task)
        assert store.stats.current_streak == 3

        # Gap of two days
        clock.advance(days=2)
        task = await store.create(title="Late")
        await store.complete(task)
        assert store.stats.current_streak == 1
        assert store.stats.longest_streak == 3


class TestTaskStoreDelete:
    """Tests for TaskStore.delete()."""

    @pytest.mark.asyncio
    async def test_delete_by_task_and_id(self, store):
        a = await store.create(title="A")
        b = await store.create(title="B")

        assert await store.delete(a) is True
        assert await store.delete(b.id) is True
        assert store.tasks == []

    @pytest.mark.asyncio
    async def test_delete_unknown(self, store):
        assert await store.delete("missing") is False

    @pytest.mark.asyncio
    async def test_delete_keeps_ledger(self, store, clock):
        task = await store.create(title="Done")
        clock.advance(hours=1)
        await store.complete(task)

        await store.delete(task.id)

        assert store.get(task.id) is None
        assert store.stats.total_tasks_completed == 1
        assert store.stats.total_tasks_created == 1


class TestTaskStoreLifecycle:
    """Tests for load, reset, snapshots and subscriptions."""

    @pytest.mark.asyncio
    async def test_reload_from_sqlite(self, clock):
        from synapse.db.sqlite import SQLiteAdapter

        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "test.db"

            first = TaskStore(SQLiteAdapter(str(db_path)), clock=clock)
            await first.load()
            task = await first.create(title="Keep me", tags=["k"], due_at=clock.now + timedelta(days=1))
            clock.advance(hours=1)
            await first.complete(task)
            await first.close()

            second = TaskStore(SQLiteAdapter(str(db_path)), clock=clock)
            snap = await second.load()
            await second.close()

        assert [t.title for t in snap.tasks] == ["Keep me"]
        assert snap.tasks[0].status == "completed"
        assert snap.stats == first.stats

    @pytest.mark.asyncio
    async def test_load_malformed_data_falls_back(self, clock):
        adapter = MemoryAdapter({TASKS_KEY: "{not json", STATS_KEY: '{"schema_version": 99, "data": {}}'})
        store = TaskStore(adapter, clock=clock)

        snap = await store.load()

        assert snap.tasks == ()
        assert snap.stats.total_tasks_created == 0

    @pytest.mark.asyncio
    async def test_load_legacy_unversioned_data(self, clock):
        adapter = MemoryAdapter({
            TASKS_KEY: json.dumps([{"id": "t1", "title": "Old", "created_at": "2025-01-01T00:00:00"}]),
            STATS_KEY: json.dumps({"total_tasks_created": 2, "total_tasks_completed": 1, "current_streak": 1}),
        })
        store = TaskStore(adapter, clock=clock)

        snap = await store.load()

        assert snap.tasks[0].id == "t1"
        # Score is recomputed on load: 50 + 2
        assert snap.stats.productivity_score == 52.0

    @pytest.mark.asyncio
    async def test_load_unknown_priority_falls_back(self, clock):
        adapter = MemoryAdapter({
            TASKS_KEY: json.dumps([{"id": "x", "title": "t", "priority": "bogus"}]),
        })
        store = TaskStore(adapter, clock=clock)

        snap = await store.load()

        assert snap.tasks == ()

    @pytest.mark.asyncio
    async def test_reset(self, store, memory_adapter, clock):
        task = await store.create(title="Gone")
        clock.advance(hours=1)
        await store.complete(task)

        await store.reset()

        assert store.tasks == []
        assert store.stats.total_tasks_created == 0
        assert await memory_adapter.keys() == []

    @pytest.mark.asyncio
    async def test_snapshot_is_isolated(self, store):
        await store.create(title="Original", tags=["a"])

        snap = store.snapshot()
        snap.tasks[0].tags.append("mutated")
        snap.stats.total_tasks_created = 99

        assert store.tasks[0].tags == ["a"]
        assert store.stats.total_tasks_created == 1

    @pytest.mark.asyncio
    async def test_subscribers_receive_snapshots(self, store):
        received = []

        async def async_listener(snap):
            received.append(("async", len(snap.tasks)))

        def broken_listener(snap):
            raise RuntimeError("boom")

        unsubscribe = store.subscribe(lambda snap: received.append(("sync", len(snap.tasks))))
        store.subscribe(broken_listener)
        store.subscribe(async_listener)

        task = await store.create(title="Observed")
        unsubscribe()
        await store.delete(task.id)

        assert received == [("sync", 1), ("async", 1), ("async", 0)]

    @pytest.mark.asyncio
    async def test_persistence_failure_is_swallowed(self, clock):
        store = TaskStore(FailingAdapter(), clock=clock)
        await store.load()

        task = await store.create(title="Volatile")

        assert store.get(task.id) is not None
        assert store.stats.total_tasks_created == 1

    @pytest.mark.asyncio
    async def test_strict_persistence_raises(self, clock):
        store = TaskStore(FailingAdapter(), clock=clock, strict_persistence=True)
        await store.load()

        with pytest.raises(StorageError):
            await store.create(title="Volatile")

        # In-memory state was still updated
        assert len(store.tasks) == 1

    @pytest.mark.asyncio
    async def test_tasks_by_status_and_priority(self, store):
        await store.create(title="A", priority="urgent")
        await store.create(title="B", priority="low", status="in_progress")

        assert [t.title for t in store.get_tasks_by_status("in_progress")] == ["B"]
        assert [t.title for t in store.get_tasks_by_priority("urgent")] == ["A"]


class TestScenario:
    """End-to-end scenario over store and views."""

    @pytest.mark.asyncio
    async def test_bills_and_dog(self, store, clock):
        from synapse.services.views import ViewEngine

        views = ViewEngine(clock=clock)

        a = await store.create(title="Pay bills", priority="urgent")
        assert store.stats.total_tasks_created == 1

        b = await store.create(title="Walk dog", priority="low", due_at=clock.now - timedelta(days=1))
        overdue = views.overdue(store.snapshot().tasks)
        assert [t.id for t in overdue] == [b.id]
        assert a.id not in [t.id for t in overdue]

        clock.advance(minutes=1)
        await store.complete(b)

        stats = store.stats
        assert stats.total_tasks_completed == 1
        assert stats.current_streak == 1
        assert views.overdue(store.snapshot().tasks) == []
        # 50 (completion rate) + 2 (streak) + 10 (efficiency)
        assert stats.productivity_score == 62.0
