from datetime import datetime, timedelta

import pytest

from conftest import make_skill
from models import PersistenceError, SkillNotFoundError, ValidationError
from services import PracticeService, ReportService, SkillService, record_session, skill_summary
from utils import ProgressUtils

NOW = datetime(2024, 3, 10, 18, 30)


def test_first_session_on_new_skill():
    skill = make_skill()
    updated = record_session(skill, 45, NOW)

    assert updated.total_hours == 0
    assert updated.total_minutes == 45
    assert updated.time_today == 45
    assert updated.current_streak == 1
    assert updated.last_practiced == NOW
    assert len(updated.sessions) == 1
    assert updated.sessions[0].duration == 45
    assert updated.sessions[0].date == NOW


def test_reaching_the_goal_exactly():
    skill = make_skill(total_hours=9999, total_minutes=59, total_goal_hours=10000)
    updated = record_session(skill, 1, NOW)

    assert (updated.total_hours, updated.total_minutes) == (10000, 0)
    assert ProgressUtils.progress(updated.total_practice_minutes, updated.total_goal_hours) == 1.0
    assert ProgressUtils.estimated_completion_days(
        updated.total_practice_minutes, updated.total_goal_hours, updated.daily_goal_minutes) == 0


@pytest.mark.parametrize("hours, minutes, duration", [(0, 0, 1), (3, 59, 1), (2, 30, 95), (7, 10, 600)])
def test_total_time_is_conserved(hours, minutes, duration):
    skill = make_skill(total_hours=hours, total_minutes=minutes)
    updated = record_session(skill, duration, NOW)
    assert updated.total_hours * 60 + updated.total_minutes == hours * 60 + minutes + duration
    assert 0 <= updated.total_minutes < 60


def test_input_skill_is_not_mutated():
    skill = make_skill(total_hours=1, total_minutes=5)
    record_session(skill, 30, NOW)

    assert skill.total_hours == 1
    assert skill.total_minutes == 5
    assert skill.sessions == []
    assert skill.last_practiced is None


def test_streak_counts_days_not_sessions():
    skill = make_skill()
    skill = record_session(skill, 20, NOW)
    skill = record_session(skill, 20, NOW + timedelta(hours=2))
    assert skill.current_streak == 1

    skill = record_session(skill, 20, NOW + timedelta(days=1))
    assert skill.current_streak == 2
    assert [s.duration for s in skill.sessions] == [20, 20, 20]


def test_time_today_restarts_on_a_new_day():
    skill = make_skill()
    skill = record_session(skill, 20, NOW)
    skill = record_session(skill, 15, NOW + timedelta(hours=1))
    assert skill.time_today == 35

    skill = record_session(skill, 10, NOW + timedelta(days=1))
    assert skill.time_today == 10


def test_skill_summary_hides_stale_time_today():
    skill = record_session(make_skill(), 20, NOW)
    summary = skill_summary(skill, NOW + timedelta(days=1))
    assert summary['time_today'] == 0
    assert summary['today_status'] == "No practice yet today - let's start!"
    assert summary['streak_status'] == "1 day streak - keep going!"


def test_create_skill_validates_names(store):
    service = SkillService(store)
    service.create_skill("  Guitar ", now=NOW)

    assert [s.name for s in service.list_skills()] == ["Guitar"]
    with pytest.raises(ValidationError, match="already exists"):
        service.create_skill("guitar")
    with pytest.raises(ValidationError, match="enter a skill name"):
        service.create_skill("   ")
    with pytest.raises(ValidationError):
        service.create_skill("x" * 51)
    with pytest.raises(ValidationError):
        service.create_skill("Piano", daily_goal_minutes=0)


def test_update_goals_and_delete(store):
    service = SkillService(store)
    skill = service.create_skill("Piano", now=NOW)
    assert skill.daily_goal_minutes == 60
    assert skill.total_goal_hours == 10000

    updated = service.update_goals(skill.id, daily_goal_minutes=45)
    assert updated.daily_goal_minutes == 45
    assert store.get(skill.id).daily_goal_minutes == 45

    service.delete_skill(skill.id)
    with pytest.raises(SkillNotFoundError):
        service.get_skill(skill.id)


def test_finish_session_commits_to_store(store):
    skill = SkillService(store).create_skill("Drawing", now=NOW)
    practice = PracticeService(store)

    practice.finish_session(skill.id, 25, now=NOW, notes="shading")
    stored = store.get(skill.id)
    assert stored.total_minutes == 25
    assert stored.sessions[0].notes == "shading"


@pytest.mark.parametrize("duration", [0, -5, "abc", None, 1.5])
def test_finish_session_rejects_bad_durations(store, duration):
    skill = SkillService(store).create_skill("Drawing", now=NOW)
    with pytest.raises(ValidationError):
        PracticeService(store).finish_session(skill.id, duration, now=NOW)
    assert store.get(skill.id).sessions == []


def test_finish_session_unknown_skill(store):
    with pytest.raises(SkillNotFoundError):
        PracticeService(store).finish_session("missing", 10, now=NOW)


def test_failed_write_keeps_previous_state(store, monkeypatch):
    skill = SkillService(store).create_skill("Drawing", now=NOW)

    def broken_put(_skill):
        raise PersistenceError("disk full")

    monkeypatch.setattr(store, "put", broken_put)
    with pytest.raises(PersistenceError):
        PracticeService(store).finish_session(skill.id, 10, now=NOW)

    monkeypatch.undo()
    assert store.get(skill.id).total_minutes == 0


def test_recent_sessions_newest_first():
    skill = make_skill()
    for day in range(9):
        skill = record_session(skill, day + 1, NOW + timedelta(days=day))

    recent = PracticeService.recent_sessions(skill)
    assert [s.duration for s in recent] == [9, 8, 7, 6, 5, 4, 3, 2, 1][:7]


def test_progress_report_lists_skills(store):
    skill = SkillService(store).create_skill("Chess", now=NOW)
    PracticeService(store).finish_session(skill.id, 90, now=NOW)

    report = ReportService(store).generate_progress_report(now=NOW)
    assert "SKILL CLOCK - PROGRESS REPORT" in report
    assert "Chess,1h 30m,10000" in report
    assert "Chess,2024-03-10 18:30,90," in report
