import logging
from datetime import datetime

from flask import Flask, Response, current_app, jsonify, request

from config import Config
from database import SkillStore
from models import PersistenceError, SkillNotFoundError, ValidationError
from services import PracticeService, ReportService, SkillService, skill_summary
from timer import PracticeTimer
from utils import TimeFormatter

LOGGER = logging.getLogger(__name__)


def skill_payload(skill, now, detail=False):
    data = skill.to_dict()
    data.pop('sessions')
    data['summary'] = skill_summary(skill, now)
    if detail:
        data['recent_sessions'] = [
            dict(session.to_dict(), label=TimeFormatter.format_session_date(session.date, now.date()))
            for session in PracticeService.recent_sessions(skill)
        ]
    return data


def timer_payload(timer):
    data = timer.to_dict()
    data['display'] = TimeFormatter.format_elapsed(data['seconds'])
    return data


def create_app(config_object=Config, overrides=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config.from_prefixed_env('SKILLCLOCK')
    if overrides:
        app.config.from_mapping(overrides)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    store = SkillStore(app.config['DATABASE'])
    skill_service = SkillService(store)
    practice_service = PracticeService(store)
    report_service = ReportService(store)
    timer = PracticeTimer()
    app.extensions['skillclock_timer'] = timer

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify(error=str(e)), 400

    @app.errorhandler(SkillNotFoundError)
    def handle_not_found(e):
        return jsonify(error=str(e)), 404

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(e):
        LOGGER.error("Persistence failure: %s", e)
        return jsonify(error=f"Database error: {str(e)}"), 500

    # Routes
    @app.route('/api/skills', methods=['GET'])
    def list_skills():
        now = datetime.now()
        skills = skill_service.list_skills()
        return jsonify(
            skills=[skill_payload(skill, now) for skill in skills],
            count_label=f"{len(skills)} skill{'s' if len(skills) != 1 else ''} in progress"
        )

    @app.route('/api/skills', methods=['POST'])
    def add_skill():
        form = request.get_json(silent=True) or {}
        skill = skill_service.create_skill(
            form.get('name'),
            daily_goal_minutes=form.get('daily_goal_minutes', current_app.config['DEFAULT_DAILY_GOAL_MINUTES']),
            total_goal_hours=form.get('total_goal_hours', current_app.config['DEFAULT_TOTAL_GOAL_HOURS']),
        )
        return jsonify(skill_payload(skill, datetime.now())), 201

    @app.route('/api/skills/<skill_id>', methods=['GET'])
    def skill_detail(skill_id):
        skill = skill_service.get_skill(skill_id)
        return jsonify(skill_payload(skill, datetime.now(), detail=True))

    @app.route('/api/skills/<skill_id>', methods=['PATCH'])
    def update_skill(skill_id):
        form = request.get_json(silent=True) or {}
        skill = skill_service.update_goals(
            skill_id,
            daily_goal_minutes=form.get('daily_goal_minutes'),
            total_goal_hours=form.get('total_goal_hours'),
        )
        return jsonify(skill_payload(skill, datetime.now()))

    @app.route('/api/skills/<skill_id>', methods=['DELETE'])
    def delete_skill(skill_id):
        timed = timer.skill_id == skill_id
        if timed and timer.is_running:
            raise ValidationError("Stop the timer before deleting the skill it is timing")
        skill_service.delete_skill(skill_id)
        if timed:
            timer.deselect()
        return '', 204

    @app.route('/api/skills/<skill_id>/sessions', methods=['POST'])
    def add_practice(skill_id):
        form = request.get_json(silent=True) or {}
        now = datetime.now()
        skill = practice_service.finish_session(
            skill_id, form.get('duration_minutes'), now=now, notes=form.get('notes')
        )
        return jsonify(skill_payload(skill, now, detail=True)), 201

    @app.route('/api/timer', methods=['GET'])
    def timer_state():
        return jsonify(timer_payload(timer))

    @app.route('/api/timer/select', methods=['POST'])
    def timer_select():
        form = request.get_json(silent=True) or {}
        skill = skill_service.get_skill(form.get('skill_id'))
        timer.select_skill(skill.id)
        return jsonify(timer_payload(timer))

    @app.route('/api/timer/start', methods=['POST'])
    def timer_start():
        timer.start()
        return jsonify(timer_payload(timer))

    @app.route('/api/timer/quick_start', methods=['POST'])
    def timer_quick_start():
        form = request.get_json(silent=True) or {}
        timer.quick_start(form.get('minutes'))
        return jsonify(timer_payload(timer))

    @app.route('/api/timer/pause', methods=['POST'])
    def timer_pause():
        timer.pause()
        return jsonify(timer_payload(timer))

    @app.route('/api/timer/reset', methods=['POST'])
    def timer_reset():
        timer.reset()
        return jsonify(timer_payload(timer))

    @app.route('/api/timer/finish', methods=['POST'])
    def timer_finish():
        minutes = timer.session_minutes()
        # Paused, not reset, until the session is stored so a failed save can be retried
        timer.pause()
        now = datetime.now()
        skill = practice_service.finish_session(timer.skill_id, minutes, now=now)
        timer.finish()
        return jsonify(
            message=f"{minutes} minutes added to {skill.name}",
            skill=skill_payload(skill, now),
            timer=timer_payload(timer),
        ), 201

    @app.route('/api/reset', methods=['POST'])
    def reset_all():
        timer.deselect()
        skill_service.reset_all()
        return '', 204

    @app.route('/progress_report')
    def progress_report():
        report = report_service.generate_progress_report()
        return Response(
            report,
            mimetype="text/csv",
            headers={"Content-disposition": "attachment; filename=skill_progress_report.csv"}
        )

    return app


if __name__ == '__main__':
    create_app().run(debug=True, host='0.0.0.0', port=5000)
