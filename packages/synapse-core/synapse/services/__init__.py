"""
Business logic services for Synapse.
"""

from synapse.services.tasks import Snapshot, TaskStore
from synapse.services.views import ViewEngine, ViewPreferences

__all__ = [
    "TaskStore",
    "Snapshot",
    "ViewEngine",
    "ViewPreferences",
]
