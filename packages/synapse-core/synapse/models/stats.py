"""
Aggregate productivity statistics.

UserStats is a historical ledger: it is updated by the task store when tasks
are created, completed or cancelled, and is never recomputed from the live
task collection.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from synapse.models.dates import parse_datetime


@dataclass
class UserStats:
    """
    Productivity statistics for the installation.

    Attributes:
        total_tasks_created: Tasks ever created
        total_tasks_completed: Transitions into completed
        total_tasks_cancelled: Transitions into cancelled
        current_streak: Consecutive days with at least one completion
        longest_streak: Longest streak observed
        last_activity_at: Timestamp of the most recent completion
        productivity_score: Composite score in [0, 100]
        most_used_tags: Tag -> number of completed tasks carrying it
        average_completion_time: Mean completion latency in seconds
    """

    total_tasks_created: int = 0
    total_tasks_completed: int = 0
    total_tasks_cancelled: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_at: Optional[datetime] = None
    productivity_score: float = 0.0
    most_used_tags: Dict[str, int] = field(default_factory=dict)
    average_completion_time: float = 0.0

    @property
    def completion_rate(self) -> float:
        """Completed tasks as a percentage of created tasks."""
        if self.total_tasks_created <= 0:
            return 0.0
        return self.total_tasks_completed / self.total_tasks_created * 100

    def to_dict(self) -> dict:
        return {
            "total_tasks_created": self.total_tasks_created,
            "total_tasks_completed": self.total_tasks_completed,
            "total_tasks_cancelled": self.total_tasks_cancelled,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_activity_at": self.last_activity_at.isoformat() if self.last_activity_at else None,
            "productivity_score": self.productivity_score,
            "most_used_tags": dict(self.most_used_tags),
            "average_completion_time": self.average_completion_time,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserStats":
        last_activity = parse_datetime(data.get("last_activity_at"))

        return cls(
            total_tasks_created=int(data.get("total_tasks_created", 0)),
            total_tasks_completed=int(data.get("total_tasks_completed", 0)),
            total_tasks_cancelled=int(data.get("total_tasks_cancelled", 0)),
            current_streak=int(data.get("current_streak", 0)),
            longest_streak=int(data.get("longest_streak", 0)),
            last_activity_at=last_activity,
            productivity_score=float(data.get("productivity_score", 0.0)),
            most_used_tags={str(k): int(v) for k, v in (data.get("most_used_tags") or {}).items()},
            average_completion_time=float(data.get("average_completion_time", 0.0)),
        )
