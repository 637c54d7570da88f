"""
Statistics rules applied by the task store.

Pure functions over UserStats; the store decides when to call them and
persists the result.
"""

from datetime import datetime

from synapse.models.stats import UserStats
from synapse.models.task import Task

STREAK_BONUS = 2.0
EFFICIENCY_BONUS = 10.0
MAX_SCORE = 100.0


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def day_difference(earlier: datetime, later: datetime) -> int:
    """Number of calendar days between two timestamps."""
    return (start_of_day(later).date() - start_of_day(earlier).date()).days


def update_streak(stats: UserStats, now: datetime) -> None:
    """
    Advance the completion streak for a completion happening at `now`.

    Consecutive days extend the streak, a completion on the same day keeps
    it, and a gap of two or more days restarts it at 1.
    """
    if stats.last_activity_at is None:
        stats.current_streak = 1
        stats.longest_streak = 1
    else:
        days = day_difference(stats.last_activity_at, now)
        if days == 1:
            stats.current_streak += 1
            stats.longest_streak = max(stats.longest_streak, stats.current_streak)
        elif days > 1:
            stats.current_streak = 1

    stats.last_activity_at = now


def compute_productivity_score(stats: UserStats) -> float:
    """Completion rate plus streak and efficiency bonuses, clamped to [0, 100]."""
    efficiency = EFFICIENCY_BONUS if stats.average_completion_time > 0 else 0.0
    score = stats.completion_rate + stats.current_streak * STREAK_BONUS + efficiency
    return max(0.0, min(MAX_SCORE, score))


def record_completion(stats: UserStats, task: Task, created_at: datetime, now: datetime) -> None:
    """
    Account for a task transitioning into completed.

    Args:
        stats: Statistics to update in place
        task: The task as it is being stored (tags, completed_at)
        created_at: Creation date of the stored record before the update
        now: Current time, used for the streak and when completed_at is missing
    """
    stats.total_tasks_completed += 1

    for tag in task.tags:
        stats.most_used_tags[tag] = stats.most_used_tags.get(tag, 0) + 1

    update_streak(stats, now)

    completed_at = task.completed_at or now
    latency = (completed_at - created_at).total_seconds()
    count = stats.total_tasks_completed
    stats.average_completion_time = (stats.average_completion_time * (count - 1) + latency) / count


def record_cancellation(stats: UserStats) -> None:
    stats.total_tasks_cancelled += 1
