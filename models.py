import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

DEFAULT_DAILY_GOAL_MINUTES = 60
DEFAULT_TOTAL_GOAL_HOURS = 10000
MAX_NAME_LENGTH = 50

# Custom Exception Classes
class PersistenceError(Exception):
    """Raised when the skill store cannot be read or written"""
    pass

class ValidationError(Exception):
    """Exception for validation errors"""
    pass

class ShortSessionError(ValidationError):
    """A timed session ended before a full minute was practiced"""
    pass

class SkillNotFoundError(Exception):
    """Exception when a skill is not found"""
    pass


def new_id() -> str:
    return uuid.uuid4().hex


def parse_datetime(value) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if not isinstance(value, (datetime, str)):
        raise TypeError(f"Expected an ISO date string, got {type(value).__name__}")
    if isinstance(value, str):
        # Stored records may carry a trailing Z from older clients
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        value = datetime.fromisoformat(value)
    # Calendar dates are compared in local time
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def _positive_or_default(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass
class PracticeSession:
    id: str
    date: datetime
    duration: int
    notes: Optional[str] = None

    def to_dict(self):
        data = {
            'id': self.id,
            'date': self.date.isoformat(),
            'duration': self.duration,
        }
        if self.notes:
            data['notes'] = self.notes
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data['id']),
            date=parse_datetime(data['date']),
            duration=int(data.get('duration', 0)),
            notes=data.get('notes') or None,
        )


@dataclass
class Skill:
    id: str
    name: str
    created_at: datetime
    total_hours: int = 0
    total_minutes: int = 0
    current_streak: int = 0
    time_today: int = 0
    last_practiced: Optional[datetime] = None
    daily_goal_minutes: int = DEFAULT_DAILY_GOAL_MINUTES
    total_goal_hours: int = DEFAULT_TOTAL_GOAL_HOURS
    sessions: List[PracticeSession] = field(default_factory=list)

    @property
    def total_practice_minutes(self) -> int:
        return self.total_hours * 60 + self.total_minutes

    def to_dict(self):
        data = {
            'id': self.id,
            'name': self.name,
            'totalHours': self.total_hours,
            'totalMinutes': self.total_minutes,
            'currentStreak': self.current_streak,
            'timeToday': self.time_today,
            'createdAt': self.created_at.isoformat(),
            'dailyGoalMinutes': self.daily_goal_minutes,
            'totalGoalHours': self.total_goal_hours,
            'sessions': [session.to_dict() for session in self.sessions],
        }
        if self.last_practiced is not None:
            data['lastPracticed'] = self.last_practiced.isoformat()
        return data

    @classmethod
    def from_dict(cls, data):
        """Build a fully populated Skill from a stored record.

        Older records may lack the goal fields, counters or the sessions
        list; those fall back to the defaults here so nothing downstream
        has to check for them. The stored hours/minutes pair is also
        re-decomposed so that total_minutes always stays below 60.
        """
        combined = int(data.get('totalHours') or 0) * 60 + int(data.get('totalMinutes') or 0)
        combined = max(combined, 0)
        return cls(
            id=str(data['id']),
            name=data['name'],
            created_at=parse_datetime(data.get('createdAt')) or datetime.now(),
            total_hours=combined // 60,
            total_minutes=combined % 60,
            current_streak=max(int(data.get('currentStreak') or 0), 0),
            time_today=max(int(data.get('timeToday') or 0), 0),
            last_practiced=parse_datetime(data.get('lastPracticed')),
            daily_goal_minutes=_positive_or_default(data.get('dailyGoalMinutes'), DEFAULT_DAILY_GOAL_MINUTES),
            total_goal_hours=_positive_or_default(data.get('totalGoalHours'), DEFAULT_TOTAL_GOAL_HOURS),
            sessions=[PracticeSession.from_dict(s) for s in data.get('sessions') or []],
        )
