"""
View Engine for Synapse.

Derives filtered, sorted and classified task lists and smart suggestions from
a task snapshot. Holds no state besides the clock.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from synapse.models.stats import UserStats
from synapse.models.task import Task
from synapse.services.stats import start_of_day

logger = logging.getLogger(__name__)

# Valid category filters
TASK_FILTERS = (
    "all",
    "pending",
    "in_progress",
    "completed",
    "today",
    "upcoming",
    "overdue",
    "high_priority",
)

# Valid sort options
SORT_OPTIONS = ("due_date", "priority", "created_date", "title")

MAX_TAG_SUGGESTIONS = 3

# (start hour inclusive, end hour exclusive, prompts)
TIME_OF_DAY_PROMPTS = (
    (6, 9, ("Morning routine check", "Review today's priorities")),
    (12, 14, ("Lunch break", "Midday progress review")),
    (17, 20, ("Evening planning", "Tomorrow's preparation")),
)


@dataclass
class ViewPreferences:
    """User-selected filter, sort and search state."""

    filter: str = "all"
    sort: str = "due_date"
    search_query: str = ""
    show_completed: bool = False

    def __post_init__(self):
        if self.filter not in TASK_FILTERS:
            raise ValueError(f"Invalid filter. Must be one of: {', '.join(TASK_FILTERS)}")
        if self.sort not in SORT_OPTIONS:
            raise ValueError(f"Invalid sort option. Must be one of: {', '.join(SORT_OPTIONS)}")


class ViewEngine:
    """Stateless derivations over a sequence of tasks."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now

    def search(self, query: str, tasks: Iterable[Task]) -> list[Task]:
        """Case-insensitive substring match on title, description or any tag."""
        tasks = list(tasks)
        if not query:
            return tasks

        needle = query.lower()
        return [
            t for t in tasks
            if needle in t.title.lower()
            or needle in (t.description or "").lower()
            or any(needle in tag.lower() for tag in t.tags)
        ]

    def due_today(self, tasks: Iterable[Task]) -> list[Task]:
        """Incomplete tasks due between the start of today and the start of tomorrow."""
        today = start_of_day(self._clock())
        tomorrow = today + timedelta(days=1)
        return [
            t for t in tasks
            if t.due_at is not None and today <= t.due_at < tomorrow and not t.is_complete
        ]

    def upcoming(self, tasks: Iterable[Task]) -> list[Task]:
        """Incomplete tasks due in the future, soonest first."""
        now = self._clock()
        found = [t for t in tasks if t.due_at is not None and t.due_at > now and not t.is_complete]
        return self.sort(found, "due_date")

    def overdue(self, tasks: Iterable[Task]) -> list[Task]:
        """Incomplete tasks whose due date has passed."""
        now = self._clock()
        return [t for t in tasks if t.is_overdue(now)]

    def sort(self, tasks: Iterable[Task], option: str) -> list[Task]:
        """
        Sort tasks by one of SORT_OPTIONS.

        Due date sorts ascending with undated tasks last; priority sorts
        urgent first; created date sorts newest first; title sorts
        case-insensitively. All sorts are stable.
        """
        tasks = list(tasks)
        if option == "due_date":
            return sorted(tasks, key=lambda t: (t.due_at is None, t.due_at or datetime.min))
        if option == "priority":
            return sorted(tasks, key=lambda t: t.priority_rank)
        if option == "created_date":
            return sorted(tasks, key=lambda t: t.created_at, reverse=True)
        if option == "title":
            return sorted(tasks, key=lambda t: t.title.lower())
        raise ValueError(f"Invalid sort option. Must be one of: {', '.join(SORT_OPTIONS)}")

    def filtered_view(self, tasks: Iterable[Task], prefs: ViewPreferences) -> list[Task]:
        """
        Apply search, then the category filter, then the sort.

        The today, upcoming and overdue filters classify the full task set
        and ignore the search query.
        """
        all_tasks = list(tasks)
        filtered = self.search(prefs.search_query, all_tasks)

        category = prefs.filter
        if category == "all":
            if not prefs.show_completed:
                filtered = [t for t in filtered if not t.is_complete]
        elif category in ("pending", "in_progress", "completed"):
            filtered = [t for t in filtered if t.status == category]
        elif category == "today":
            filtered = self.due_today(all_tasks)
        elif category == "upcoming":
            filtered = self.upcoming(all_tasks)
        elif category == "overdue":
            filtered = self.overdue(all_tasks)
        elif category == "high_priority":
            filtered = [t for t in filtered if t.priority in ("high", "urgent")]
        else:
            raise ValueError(f"Invalid filter. Must be one of: {', '.join(TASK_FILTERS)}")

        return self.sort(filtered, prefs.sort)

    def smart_suggestions(self, stats: UserStats, tasks: Iterable[Task]) -> list[str]:
        """
        Suggest prompts from the time of day, the most used tags and overdue work.

        Returns:
            Suggestions in that order; consumers may truncate for display
        """
        suggestions: list[str] = []

        hour = self._clock().hour
        for start, end, prompts in TIME_OF_DAY_PROMPTS:
            if start <= hour < end:
                suggestions.extend(prompts)
                break

        # sorted() is stable, so equal counts keep insertion order
        top_tags = sorted(stats.most_used_tags.items(), key=lambda item: item[1], reverse=True)
        for tag, _count in top_tags[:MAX_TAG_SUGGESTIONS]:
            suggestions.append(f"New {tag} task")

        if self.overdue(tasks):
            suggestions.append("Review overdue tasks")

        return suggestions

    def summary(self, tasks: Iterable[Task]) -> dict:
        """Dashboard counters."""
        tasks = list(tasks)
        return {
            "due_today": len(self.due_today(tasks)),
            "overdue": len(self.overdue(tasks)),
            "pending": sum(1 for t in tasks if t.status == "pending"),
            "completed": sum(1 for t in tasks if t.status == "completed"),
        }
