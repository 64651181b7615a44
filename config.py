from models import DEFAULT_DAILY_GOAL_MINUTES, DEFAULT_TOTAL_GOAL_HOURS


class Config:
    """Defaults; any key can be overridden with a SKILLCLOCK_ environment variable"""
    SECRET_KEY = 'dev'
    DATABASE = 'skills.db'
    DEFAULT_DAILY_GOAL_MINUTES = DEFAULT_DAILY_GOAL_MINUTES
    DEFAULT_TOTAL_GOAL_HOURS = DEFAULT_TOTAL_GOAL_HOURS
    LOG_LEVEL = 'INFO'


class TestConfig(Config):
    TESTING = True
    LOG_LEVEL = 'DEBUG'
