import logging
import time
from typing import Callable, Optional

from models import ShortSessionError, ValidationError

LOGGER = logging.getLogger(__name__)

QUICK_START_MINUTES = [5, 15, 25, 60]

STOPPED = 'stopped'
RUNNING = 'running'
PAUSED = 'paused'


class PracticeTimer:
    """Stopwatch for one practice session.

    The counter moves in whole seconds while running and holds its value
    while paused. Only one skill can be timed at a time.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.skill_id: Optional[str] = None
        self.state = STOPPED
        self.start_time = 0.0
        self.elapsed_before_pause = 0

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING

    @property
    def seconds(self) -> int:
        if self.state == RUNNING:
            return self.elapsed_before_pause + int(self.clock() - self.start_time)
        return self.elapsed_before_pause

    def select_skill(self, skill_id: str):
        if self.is_running:
            raise ValidationError("Stop the current timer before switching skills")
        self.skill_id = skill_id
        self.reset()

    def start(self):
        if self.skill_id is None:
            raise ValidationError("Please select a skill to start practicing")
        if self.is_running:
            return
        self.start_time = self.clock()
        self.state = RUNNING
        LOGGER.debug("Timer started for skill %s at %ss", self.skill_id, self.elapsed_before_pause)

    def quick_start(self, minutes: int):
        if minutes not in QUICK_START_MINUTES:
            raise ValidationError(f"Quick start must be one of {QUICK_START_MINUTES} minutes")
        if self.seconds != 0 or self.is_running:
            raise ValidationError("Quick start is only available on a fresh timer")
        if self.skill_id is None:
            raise ValidationError("Please select a skill to start practicing")
        self.elapsed_before_pause = minutes * 60
        self.start()

    def pause(self):
        if not self.is_running:
            return
        self.elapsed_before_pause = self.seconds
        self.state = PAUSED

    def reset(self):
        self.state = STOPPED
        self.start_time = 0.0
        self.elapsed_before_pause = 0

    def deselect(self):
        if self.is_running:
            raise ValidationError("Stop the current timer before switching skills")
        self.skill_id = None
        self.reset()

    def session_minutes(self) -> int:
        """Whole minutes on the counter, checked for saving.

        Under a minute ShortSessionError is raised and the counter is left
        alone so the caller can continue or reset.
        """
        if self.skill_id is None:
            raise ValidationError("No skill selected")
        elapsed = self.seconds
        if elapsed < 60:
            raise ShortSessionError(
                "Sessions shorter than 1 minute won't be saved. Continue practicing or reset?"
            )
        return elapsed // 60

    def finish(self) -> int:
        """Stop the timer and return the whole minutes practiced"""
        minutes = self.session_minutes()
        self.reset()
        return minutes

    def to_dict(self):
        return {
            'skill_id': self.skill_id,
            'state': self.state,
            'seconds': self.seconds,
        }
