import math
from datetime import date, datetime, timedelta
from typing import Optional

from models import DEFAULT_DAILY_GOAL_MINUTES, DEFAULT_TOTAL_GOAL_HOURS


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


class TimeFormatter:
    @staticmethod
    def format_total_time(hours: int, minutes: int) -> str:
        total = hours * 60 + minutes
        h, m = divmod(total, 60)

        if h == 0 and m == 0:
            return "0 minutes"
        if h == 0:
            return _plural(m, "minute")
        if m == 0:
            return _plural(h, "hour")
        return f"{h}h {m}m"

    @staticmethod
    def format_compact_time(hours: int, minutes: int) -> str:
        """Short form used in skill lists"""
        if hours == 0 and minutes == 0:
            return "0h 0m"
        if hours == 0:
            return f"{minutes}m"
        if minutes == 0:
            return f"{hours}h"
        return f"{hours}h {minutes}m"

    @staticmethod
    def format_elapsed(total_seconds: int) -> str:
        hours, rest = divmod(int(total_seconds), 3600)
        minutes, seconds = divmod(rest, 60)

        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    @staticmethod
    def format_estimated_time(days: int) -> str:
        if days <= 0:
            return "Goal completed!"
        if days < 30:
            return f"{_plural(days, 'day')} left"
        if days < 365:
            return f"~{_plural(days // 30, 'month')} left"
        return f"~{_plural(days // 365, 'year')} left"

    @staticmethod
    def format_session_date(value: datetime, today: date) -> str:
        session_day = value.date()
        if session_day == today:
            return "Today"
        if session_day == today - timedelta(days=1):
            return "Yesterday"
        return f"{session_day.strftime('%b')} {session_day.day}"


class ProgressUtils:
    @staticmethod
    def progress(total_minutes_practiced: int, goal_hours: int) -> float:
        if goal_hours <= 0:
            goal_hours = DEFAULT_TOTAL_GOAL_HOURS
        return min(total_minutes_practiced / (goal_hours * 60), 1.0)

    @staticmethod
    def progress_percentage(total_minutes_practiced: int, goal_hours: int) -> str:
        return f"{ProgressUtils.progress(total_minutes_practiced, goal_hours) * 100:.1f}"

    @staticmethod
    def estimated_completion_days(current_total_minutes: int, goal_hours: int, daily_goal_minutes: int) -> int:
        remaining = goal_hours * 60 - current_total_minutes
        # A missing daily goal reads as "nothing left to schedule"
        if remaining <= 0 or daily_goal_minutes <= 0:
            return 0
        return math.ceil(remaining / daily_goal_minutes)

    @staticmethod
    def today_progress(time_today: int, daily_goal_minutes: int) -> float:
        if daily_goal_minutes <= 0:
            daily_goal_minutes = DEFAULT_DAILY_GOAL_MINUTES
        return min(time_today / daily_goal_minutes, 1.0)

    @staticmethod
    def today_status(time_today: int, daily_goal_minutes: int) -> str:
        if time_today == 0:
            return "No practice yet today - let's start!"
        if ProgressUtils.today_progress(time_today, daily_goal_minutes) >= 1:
            return "Daily goal completed! Amazing work!"
        return f"{daily_goal_minutes - time_today} minutes to go"

    @staticmethod
    def current_time_today(skill, now: datetime) -> int:
        """Minutes practiced on now's calendar date"""
        if skill.last_practiced is None or skill.last_practiced.date() != now.date():
            return 0
        return skill.time_today

    @staticmethod
    def days_since_created(created_at: datetime, now: datetime) -> int:
        elapsed = abs((now - created_at).total_seconds())
        return max(math.ceil(elapsed / 86400), 1)

    @staticmethod
    def progress_color(progress: float) -> str:
        if progress > 0.75:
            return "#22c55e"
        if progress > 0.5:
            return "#f59e0b"
        if progress > 0.25:
            return "#3b82f6"
        return "#000"


class StreakUtils:
    @staticmethod
    def next_streak(last_practiced: Optional[datetime], current_streak: int, now: datetime) -> int:
        # Any day change counts as one more day; gaps do not reset the streak
        if last_practiced is not None and last_practiced.date() == now.date():
            return current_streak
        return current_streak + 1

    @staticmethod
    def get_streak_status(streak: int) -> str:
        if streak <= 0:
            return "Start your streak!"
        if streak < 7:
            return f"{streak} day streak - keep going!"
        if streak < 30:
            return f"{streak} day streak - you're on fire!"
        if streak < 100:
            return f"{streak} day streak - amazing dedication!"
        return f"{streak} day streak - you're a master!"
