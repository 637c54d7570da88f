"""
Pytest configuration and fixtures for synapse tests.
"""

import pytest
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add packages to path for testing
packages_dir = Path(__file__).parent.parent / "packages"
sys.path.insert(0, str(packages_dir / "synapse-core"))
sys.path.insert(0, str(packages_dir / "synapse-mcp"))


class FakeClock:
    """Controllable replacement for datetime.now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """A clock fixed at 2026-03-10 10:00 local time."""
    return FakeClock(datetime(2026, 3, 10, 10, 0, 0))


@pytest.fixture
def memory_adapter():
    from synapse.db.memory import MemoryAdapter

    return MemoryAdapter()


@pytest.fixture
async def store(memory_adapter, clock):
    """A loaded TaskStore over an in-memory adapter."""
    from synapse.services.tasks import TaskStore

    task_store = TaskStore(memory_adapter, clock=clock)
    await task_store.load()
    return task_store


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / ".synapse"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_task_data():
    """Sample task data for testing."""
    return {
        "title": "Test Task",
        "description": "A test task description",
        "priority": "medium",
        "tags": ["test", "sample"],
    }
