"""
Automation, reminder and recurrence configuration attached to tasks.

These records are descriptive only: Synapse stores them so that an external
scheduler, geofence monitor or rule engine can act on them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union
from uuid import uuid4

from synapse.models.dates import parse_datetime


def _dt_to_str(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class TimeTrigger:
    """Fires at a point in time, optionally repeating every `repeat_interval` seconds."""

    trigger_at: datetime
    repeat_interval: Optional[float] = None

    TYPE = "time"
    display_name = "Time-based"

    def to_dict(self) -> dict:
        return {
            "trigger_at": _dt_to_str(self.trigger_at),
            "repeat_interval": self.repeat_interval,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimeTrigger":
        return cls(
            trigger_at=parse_datetime(data["trigger_at"]),
            repeat_interval=data.get("repeat_interval"),
        )


@dataclass
class LocationTrigger:
    """Fires when entering or leaving a circular region (radius in meters)."""

    latitude: float
    longitude: float
    location_name: str
    radius: float = 100.0
    trigger_on_entry: bool = True
    trigger_on_exit: bool = False

    TYPE = "location"
    display_name = "Location-based"

    def to_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius": self.radius,
            "trigger_on_entry": self.trigger_on_entry,
            "trigger_on_exit": self.trigger_on_exit,
            "location_name": self.location_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LocationTrigger":
        return cls(
            latitude=data["latitude"],
            longitude=data["longitude"],
            location_name=data.get("location_name", ""),
            radius=data.get("radius", 100.0),
            trigger_on_entry=data.get("trigger_on_entry", True),
            trigger_on_exit=data.get("trigger_on_exit", False),
        )


@dataclass
class CustomTrigger:
    """A named user rule with a free-text condition."""

    rule_name: str
    condition: str

    TYPE = "custom"
    display_name = "Custom Rule"

    def to_dict(self) -> dict:
        return {"rule_name": self.rule_name, "condition": self.condition}

    @classmethod
    def from_dict(cls, data: dict) -> "CustomTrigger":
        return cls(rule_name=data["rule_name"], condition=data.get("condition", ""))


TriggerConfig = Union[TimeTrigger, LocationTrigger, CustomTrigger]

TRIGGER_TYPES = {
    TimeTrigger.TYPE: TimeTrigger,
    LocationTrigger.TYPE: LocationTrigger,
    CustomTrigger.TYPE: CustomTrigger,
}


@dataclass
class AutomationTrigger:
    """
    An automation trigger attached to a task.

    Attributes:
        trigger: One of TimeTrigger, LocationTrigger, CustomTrigger
        id: Unique identifier (UUID)
        is_active: Whether the trigger is enabled
    """

    trigger: TriggerConfig
    id: str = field(default_factory=lambda: str(uuid4()))
    is_active: bool = True

    @property
    def type(self) -> str:
        return self.trigger.TYPE

    @property
    def display_name(self) -> str:
        return self.trigger.display_name

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.trigger.TYPE,
            "config": self.trigger.to_dict(),
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AutomationTrigger":
        trigger_type = data.get("type")
        if trigger_type not in TRIGGER_TYPES:
            raise ValueError(
                f"Invalid trigger type: {trigger_type}. "
                f"Must be one of: {', '.join(TRIGGER_TYPES)}"
            )
        return cls(
            id=data.get("id") or str(uuid4()),
            trigger=TRIGGER_TYPES[trigger_type].from_dict(data.get("config", {})),
            is_active=data.get("is_active", True),
        )


@dataclass
class TaskSchedule:
    """Reminder configuration for a task."""

    alert_at: datetime
    reminder_minutes_before: int = 15
    has_notification: bool = True

    def to_dict(self) -> dict:
        return {
            "alert_at": _dt_to_str(self.alert_at),
            "reminder_minutes_before": self.reminder_minutes_before,
            "has_notification": self.has_notification,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TaskSchedule":
        return cls(
            alert_at=parse_datetime(data["alert_at"]),
            reminder_minutes_before=data.get("reminder_minutes_before", 15),
            has_notification=data.get("has_notification", True),
        )


# Valid recurrence frequencies
RECURRENCE_FREQUENCIES = ("daily", "weekly", "monthly", "yearly")


@dataclass
class RecurrenceRule:
    """How often a recurring task repeats, until an optional end date."""

    frequency: str
    interval: int = 1
    end_at: Optional[datetime] = None

    def __post_init__(self):
        if self.frequency not in RECURRENCE_FREQUENCIES:
            raise ValueError(
                f"Invalid frequency. Must be one of: {', '.join(RECURRENCE_FREQUENCIES)}"
            )

    def to_dict(self) -> dict:
        return {
            "frequency": self.frequency,
            "interval": self.interval,
            "end_at": _dt_to_str(self.end_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrenceRule":
        return cls(
            frequency=data["frequency"],
            interval=data.get("interval", 1),
            end_at=parse_datetime(data.get("end_at")),
        )
