"""
Task model for Synapse.

Tasks are the user's units of work: prioritized, optionally due, tagged, and
carrying reminder, automation and recurrence configuration.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List
from uuid import uuid4

from synapse.models.automation import AutomationTrigger, RecurrenceRule, TaskSchedule
from synapse.models.dates import parse_datetime, to_local_naive


@dataclass
class Task:
    """
    A task or work item.

    Attributes:
        id: Unique identifier (UUID), stable for the task's lifetime
        title: Task title/summary
        description: Detailed description
        priority: Priority level (low, medium, high, urgent)
        status: Current status (pending, in_progress, completed, cancelled)
        created_at: When the task was created
        due_at: Optional due date
        completed_at: When the task was completed (only while status is completed)
        tags: Ordered list of tags
        automation_triggers: Trigger configurations (stored, never evaluated)
        schedule: Optional reminder configuration
        is_recurring: Whether the task repeats
        recurrence_rule: How the task repeats
        calendar_event_id: External calendar reference
    """

    title: str
    id: str = field(default_factory=lambda: str(uuid4()))
    description: str = ""
    priority: str = "medium"  # low, medium, high, urgent
    status: str = "pending"  # pending, in_progress, completed, cancelled
    created_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    tags: List[str] = field(default_factory=list)
    automation_triggers: List[AutomationTrigger] = field(default_factory=list)
    schedule: Optional[TaskSchedule] = None
    is_recurring: bool = False
    recurrence_rule: Optional[RecurrenceRule] = None
    calendar_event_id: Optional[str] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.now()
        self.created_at = to_local_naive(self.created_at)
        self.due_at = to_local_naive(self.due_at)
        self.completed_at = to_local_naive(self.completed_at)

    @property
    def priority_rank(self) -> int:
        """Display rank of the priority; lower sorts first."""
        return PRIORITY_RANK[self.priority]

    @property
    def is_open(self) -> bool:
        """Check if task is still open."""
        return self.status in ("pending", "in_progress")

    @property
    def is_complete(self) -> bool:
        """Check if task is completed."""
        return self.status == "completed"

    def is_overdue(self, now: datetime) -> bool:
        """Check if the due date has passed without the task being completed."""
        return self.due_at is not None and self.due_at < now and not self.is_complete

    def to_dict(self) -> dict:
        """Convert to dictionary for storage/serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "due_at": self.due_at.isoformat() if self.due_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "tags": list(self.tags),
            "automation_triggers": [t.to_dict() for t in self.automation_triggers],
            "schedule": self.schedule.to_dict() if self.schedule else None,
            "is_recurring": self.is_recurring,
            "recurrence_rule": self.recurrence_rule.to_dict() if self.recurrence_rule else None,
            "calendar_event_id": self.calendar_event_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from dictionary (e.g., a persisted record)."""
        data = dict(data)

        priority = data.get("priority", "medium")
        if priority not in TASK_PRIORITIES:
            raise ValueError(f"Invalid priority. Must be one of: {', '.join(TASK_PRIORITIES)}")
        status = data.get("status", "pending")
        if status not in TASK_STATUSES:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(TASK_STATUSES)}")

        # Parse datetime fields
        for field_name in ("created_at", "due_at", "completed_at"):
            data[field_name] = parse_datetime(data.get(field_name))

        schedule = data.get("schedule")
        rule = data.get("recurrence_rule")

        return cls(
            id=data.get("id") or str(uuid4()),
            title=data.get("title", ""),
            description=data.get("description") or "",
            priority=priority,
            status=status,
            created_at=data.get("created_at"),
            due_at=data.get("due_at"),
            completed_at=data.get("completed_at"),
            tags=list(data.get("tags") or []),
            automation_triggers=[
                AutomationTrigger.from_dict(t) for t in data.get("automation_triggers") or []
            ],
            schedule=TaskSchedule.from_dict(schedule) if schedule else None,
            is_recurring=bool(data.get("is_recurring", False)),
            recurrence_rule=RecurrenceRule.from_dict(rule) if rule else None,
            calendar_event_id=data.get("calendar_event_id"),
        )


# Valid status values
TASK_STATUSES = ("pending", "in_progress", "completed", "cancelled")

# Valid priority values
TASK_PRIORITIES = ("low", "medium", "high", "urgent")

# Display rank per priority (urgent first)
PRIORITY_RANK = {"urgent": 0, "high": 1, "medium": 2, "low": 3}
