from datetime import datetime

import pytest

from app import create_app
from config import TestConfig
from database import SkillStore
from models import Skill


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def store(tmp_path):
    return SkillStore(str(tmp_path / "skills.db"))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app(tmp_path, clock):
    flask_app = create_app(TestConfig, {'DATABASE': str(tmp_path / "app.db")})
    flask_app.extensions['skillclock_timer'].clock = clock
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def make_skill(**overrides) -> Skill:
    values = dict(
        id="skill-1",
        name="Guitar",
        created_at=datetime(2024, 3, 1, 9, 0),
        daily_goal_minutes=30,
        total_goal_hours=1000,
    )
    values.update(overrides)
    return Skill(**values)
