"""
Core data models for Synapse.
"""

from synapse.models.automation import (
    AutomationTrigger,
    CustomTrigger,
    LocationTrigger,
    RecurrenceRule,
    TaskSchedule,
    TimeTrigger,
)
from synapse.models.stats import UserStats
from synapse.models.task import Task

__all__ = [
    "Task",
    "UserStats",
    "AutomationTrigger",
    "TimeTrigger",
    "LocationTrigger",
    "CustomTrigger",
    "TaskSchedule",
    "RecurrenceRule",
]
