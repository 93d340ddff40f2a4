"""
Pytest configuration and fixtures for lesson planner tests
"""

import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from lesson_planner import config
from tests.factories import make_lesson_plans


@pytest.fixture
def start_day():
    # Monday
    return date(2025, 3, 3)


@pytest.fixture
def week_of_plans(start_day):
    return make_lesson_plans(start_day, 7)


@pytest.fixture
def plans_json(week_of_plans):
    return json.dumps({"lessonPlans": week_of_plans})


@pytest.fixture
def no_sleep():
    return MagicMock(name="sleep")


@pytest.fixture(autouse=True)
def fast_generation_settings(monkeypatch):
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(config, "POLL_INTERVAL_SECONDS", 0.0)
    monkeypatch.setattr(config, "RUN_TIMEOUT_SECONDS", 90.0)
    monkeypatch.setattr(config, "CLEANUP_UPSTREAM_RESOURCES", True)
    monkeypatch.setattr(config, "STRICT_PLAN_VALIDATION", False)
    monkeypatch.setattr(config, "CAL_TOKEN_JSON", None)
    monkeypatch.setattr(config, "GLOBAL_CREDS_JSON", None)
    monkeypatch.setattr(config, "GLOBAL_EMAIL", None)
    monkeypatch.setattr(config, "GLOBAL_CALENDAR_ID", None)
