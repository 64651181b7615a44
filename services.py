import csv
import logging
from dataclasses import replace
from datetime import datetime
from io import StringIO
from typing import List, Optional

from models import (DEFAULT_DAILY_GOAL_MINUTES, DEFAULT_TOTAL_GOAL_HOURS, MAX_NAME_LENGTH,
                    PersistenceError, PracticeSession, Skill, SkillNotFoundError,
                    ValidationError, new_id)
from utils import ProgressUtils, StreakUtils, TimeFormatter

LOGGER = logging.getLogger(__name__)


def record_session(skill: Skill, duration_minutes: int, now: datetime, notes: Optional[str] = None) -> Skill:
    """Return the skill as it stands after a finished session.

    The input skill is left untouched. duration_minutes is expected to be
    at least 1; callers validate it.
    """
    session = PracticeSession(id=new_id(), date=now, duration=duration_minutes, notes=notes)

    combined = skill.total_practice_minutes + duration_minutes

    same_day = skill.last_practiced is not None and skill.last_practiced.date() == now.date()
    time_today = (skill.time_today if same_day else 0) + duration_minutes

    return replace(
        skill,
        sessions=list(skill.sessions) + [session],
        total_hours=combined // 60,
        total_minutes=combined % 60,
        time_today=time_today,
        current_streak=StreakUtils.next_streak(skill.last_practiced, skill.current_streak, now),
        last_practiced=now,
    )


def skill_summary(skill: Skill, now: datetime) -> dict:
    """Derived metrics shown next to a skill"""
    total = skill.total_practice_minutes
    time_today = ProgressUtils.current_time_today(skill, now)
    progress = ProgressUtils.progress(total, skill.total_goal_hours)
    estimated_days = ProgressUtils.estimated_completion_days(
        total, skill.total_goal_hours, skill.daily_goal_minutes
    )
    return {
        'total_time': TimeFormatter.format_total_time(skill.total_hours, skill.total_minutes),
        'compact_time': TimeFormatter.format_compact_time(skill.total_hours, skill.total_minutes),
        'progress': progress,
        'progress_percentage': ProgressUtils.progress_percentage(total, skill.total_goal_hours),
        'progress_color': ProgressUtils.progress_color(progress),
        'estimated_days': estimated_days,
        'estimated_time': TimeFormatter.format_estimated_time(estimated_days),
        'time_today': time_today,
        'today_progress': ProgressUtils.today_progress(time_today, skill.daily_goal_minutes),
        'today_status': ProgressUtils.today_status(time_today, skill.daily_goal_minutes),
        'streak_status': StreakUtils.get_streak_status(skill.current_streak),
        'days_working': ProgressUtils.days_since_created(skill.created_at, now),
        'session_count': len(skill.sessions),
    }


def _parse_positive_int(value, label):
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a whole number")
    if number != value and str(number) != str(value).strip():
        raise ValidationError(f"{label} must be a whole number")
    if number <= 0:
        raise ValidationError(f"{label} must be a positive number")
    return number


class SkillService:
    def __init__(self, store):
        self.store = store

    def list_skills(self) -> List[Skill]:
        return self.store.get_all()

    def get_skill(self, skill_id) -> Skill:
        skill = self.store.get(skill_id)
        if skill is None:
            raise SkillNotFoundError(f"Skill with ID {skill_id} not found")
        return skill

    def validate_name(self, name, existing: List[Skill], ignore_id=None) -> str:
        name = (name or '').strip()
        if not name:
            raise ValidationError("Please enter a skill name")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Skill name must be at most {MAX_NAME_LENGTH} characters")
        lowered = name.lower()
        if any(s.name.lower() == lowered and s.id != ignore_id for s in existing):
            raise ValidationError("This skill already exists")
        return name

    def create_skill(self, name, daily_goal_minutes=DEFAULT_DAILY_GOAL_MINUTES,
                     total_goal_hours=DEFAULT_TOTAL_GOAL_HOURS, now=None) -> Skill:
        """Create a new skill"""
        name = self.validate_name(name, self.store.get_all())
        skill = Skill(
            id=new_id(),
            name=name,
            created_at=now or datetime.now(),
            daily_goal_minutes=_parse_positive_int(daily_goal_minutes, "Daily goal"),
            total_goal_hours=_parse_positive_int(total_goal_hours, "Total goal"),
        )
        self.store.put(skill)
        LOGGER.info("Created skill %s (%s)", skill.name, skill.id)
        return skill

    def update_goals(self, skill_id, daily_goal_minutes=None, total_goal_hours=None) -> Skill:
        """Change one or both goals of a skill"""
        skill = self.get_skill(skill_id)
        changes = {}
        if daily_goal_minutes is not None:
            changes['daily_goal_minutes'] = _parse_positive_int(daily_goal_minutes, "Daily goal")
        if total_goal_hours is not None:
            changes['total_goal_hours'] = _parse_positive_int(total_goal_hours, "Total goal")
        updated = replace(skill, **changes)
        self.store.put(updated)
        return updated

    def delete_skill(self, skill_id):
        skill = self.get_skill(skill_id)
        self.store.remove(skill.id)
        LOGGER.info("Deleted skill %s (%s)", skill.name, skill.id)

    def reset_all(self):
        self.store.clear()


class PracticeService:
    def __init__(self, store):
        self.store = store

    def finish_session(self, skill_id, duration_minutes, now=None, notes=None) -> Skill:
        """Record a finished session and commit the updated skill"""
        duration = _parse_positive_int(duration_minutes, "Duration")
        skill = self.store.get(skill_id)
        if skill is None:
            raise SkillNotFoundError(f"Skill with ID {skill_id} not found")

        updated = record_session(skill, duration, now or datetime.now(), notes=notes or None)
        try:
            self.store.put(updated)
        except PersistenceError:
            LOGGER.error("Could not save %s minute session for %s", duration, skill.name)
            raise
        LOGGER.info("%s minutes added to %s", duration, skill.name)
        return updated

    @staticmethod
    def recent_sessions(skill: Skill, limit=7) -> List[PracticeSession]:
        return sorted(skill.sessions, key=lambda s: s.date, reverse=True)[:limit]


class ReportService:
    def __init__(self, store):
        self.store = store

    def generate_progress_report(self, now=None):
        """Generate a CSV progress report over every skill"""
        now = now or datetime.now()
        skills = self.store.get_all()

        output = StringIO()
        writer = csv.writer(output)

        writer.writerow(['SKILL CLOCK - PROGRESS REPORT'])
        writer.writerow(['Generated on', now.strftime('%Y-%m-%d %H:%M:%S')])
        writer.writerow([])

        total_minutes = sum(s.total_practice_minutes for s in skills)
        total_sessions = sum(len(s.sessions) for s in skills)
        practice_days = len({session.date.date() for s in skills for session in s.sessions})

        writer.writerow(['OVERALL STATISTICS'])
        writer.writerow(['Total Skills', len(skills)])
        writer.writerow(['Total Practice Time', TimeFormatter.format_total_time(0, total_minutes)])
        writer.writerow(['Total Practice Sessions', total_sessions])
        writer.writerow(['Total Practice Days', practice_days])
        writer.writerow([])

        writer.writerow(['SKILLS SUMMARY'])
        writer.writerow(['Name', 'Total Time', 'Goal Hours', 'Progress', 'Sessions',
                         'Current Streak', 'Estimated Completion', 'Last Practiced', 'Days Since Practice'])
        for skill in skills:
            summary = skill_summary(skill, now)
            days_since = "N/A"
            last_practiced = 'Never'
            if skill.last_practiced:
                last_practiced = skill.last_practiced.strftime('%Y-%m-%d %H:%M')
                days_since = (now.date() - skill.last_practiced.date()).days
            writer.writerow([
                skill.name,
                summary['total_time'],
                skill.total_goal_hours,
                f"{summary['progress_percentage']}%",
                summary['session_count'],
                skill.current_streak,
                summary['estimated_time'],
                last_practiced,
                days_since,
            ])

        writer.writerow([])
        writer.writerow(['SESSION HISTORY'])
        writer.writerow(['Skill', 'Date', 'Duration (min)', 'Notes'])
        for skill in skills:
            for session in PracticeService.recent_sessions(skill, limit=len(skill.sessions)):
                writer.writerow([
                    skill.name,
                    session.date.strftime('%Y-%m-%d %H:%M'),
                    session.duration,
                    session.notes or '',
                ])

        output.seek(0)
        return output.getvalue()
