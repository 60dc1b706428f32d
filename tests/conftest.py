import json
import time
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

import config
from main import app
from routes.slack_signature import compute_signature


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """환경 변수/.env 값과 무관하게 테스트마다 설정을 고정한다."""
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(config, "OPENAI_BASE", "https://llm.test/v1")
    monkeypatch.setattr(config, "OPENAI_MODEL", "test-model")
    monkeypatch.setattr(config, "SLACK_BOT_TOKEN", "")
    monkeypatch.setattr(config, "SLACK_SIGNING_SECRET", "")


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def slack_token(monkeypatch):
    monkeypatch.setattr(config, "SLACK_BOT_TOKEN", "xoxb-test")
    return "xoxb-test"


def make_response(payload, status_code=200):
    r = MagicMock()
    r.status_code = status_code
    r.ok = 200 <= status_code < 300
    r.json.return_value = payload
    r.text = json.dumps(payload)
    return r


def sample_plan(**overrides):
    plan = {
        "id": "plan-1",
        "title": "Team Offsite",
        "date": "2025-03-15",
        "guests": [],
        "timeline": ["Book venue", "Send invites", "Order catering"],
        "budget": 1500,
        "venue": "Lakeside Lodge",
        "status": "draft",
        "createdAt": "2025-03-01T10:00:00.000Z",
        "updatedAt": "2025-03-01T10:00:00.000Z",
    }
    plan.update(overrides)
    return plan


def signed_headers(secret, body, timestamp=None):
    ts = str(int(timestamp if timestamp is not None else time.time()))
    return {
        "X-Slack-Request-Timestamp": ts,
        "X-Slack-Signature": compute_signature(secret, ts, body),
        "Content-Type": "application/json",
    }
