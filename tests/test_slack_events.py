import json
import threading
import time
from unittest.mock import patch

import pytest

import config
from conftest import make_response, sample_plan, signed_headers
from routes.plan_codec import format_plan_message
from routes.planner_openai import LLMTimeout, LLMError
from routes.planner_prompts import SYSTEM_PROMPT, TIMEOUT_APOLOGY, NO_CONTEXT_NOTE
from routes.slack_classify import classify_payload

PLAN_REPLY = json.dumps({
    "action": "create_event",
    "event": {
        "title": "Launch Party",
        "date": "2025-09-20",
        "guests": [],
        "timeline": ["Book DJ", "Order food"],
        "budget": 2500,
        "venue": "Rooftop",
    },
    "response": "Here you go",
})


def _callback(event):
    return {"type": "event_callback", "team_id": "T1", "event": event}


def _mention(text="<@U0BOT> plan a launch party", channel="C42"):
    return _callback({"type": "app_mention", "text": text, "channel": channel, "user": "U7", "ts": "171.1"})


def _post(client, payload, headers=None):
    body = json.dumps(payload)
    return client.post("/slack/events", content=body, headers=headers or {"Content-Type": "application/json"})


@pytest.fixture
def llm():
    with patch("services.slack_service.chat_completion") as m:
        yield m


@pytest.fixture
def slack_post(slack_token):
    with patch("routes.slack_api.requests.post", return_value=make_response({"ok": True, "ts": "1.1"})) as m:
        yield m


def _posted(slack_post):
    return [c.kwargs["json"] for c in slack_post.call_args_list]


class TestClassify:

    def test_handshake(self):
        evt = classify_payload({"type": "url_verification", "challenge": "abc"})
        assert evt.kind == "handshake" and evt.challenge == "abc"

    def test_bot_message_ignored(self):
        evt = classify_payload(_callback({"type": "message", "bot_id": "B1", "text": "plan a party"}))
        assert evt.kind == "ignored" and evt.reason == "bot_message"

    def test_keyword_message_is_ambient(self):
        evt = classify_payload(_callback({"type": "message", "text": "Let's throw a PARTY", "channel": "C1"}))
        assert evt.kind == "ambient"

    def test_message_without_keyword_ignored(self):
        evt = classify_payload(_callback({"type": "message", "text": "lunch?", "channel": "C1"}))
        assert evt.kind == "ignored"

    def test_mention(self):
        assert classify_payload(_mention()).kind == "mention"

    def test_unknown_event_type(self):
        evt = classify_payload(_callback({"type": "reaction_added"}))
        assert evt.kind == "unrecognized" and evt.event_type == "reaction_added"

    def test_non_dict_payload(self):
        assert classify_payload(["x"]).kind == "unrecognized"


class TestWebhookBasics:

    def test_handshake_echoes_challenge(self, client):
        r = _post(client, {"type": "url_verification", "challenge": "abc123"})
        assert r.status_code == 200
        assert r.text == "abc123"

    def test_invalid_json_still_ok(self, client):
        r = client.post("/slack/events", content=b"not json", headers={"Content-Type": "application/json"})
        assert r.status_code == 200
        assert r.text == "OK"

    def test_bot_message_never_reaches_model(self, client, llm):
        r = _post(client, _callback({"type": "message", "bot_id": "B1", "text": "event plan party", "channel": "C1"}))
        assert r.status_code == 200
        assert llm.call_count == 0

    def test_unrecognized_event_ok(self, client, llm):
        r = _post(client, _callback({"type": "channel_created"}))
        assert r.status_code == 200
        assert llm.call_count == 0


class TestSignature:

    def test_bad_signature_401(self, client, monkeypatch, llm):
        monkeypatch.setattr(config, "SLACK_SIGNING_SECRET", "s3cret")
        body = json.dumps(_mention())
        headers = signed_headers("wrong", body)
        r = client.post("/slack/events", content=body, headers=headers)
        assert r.status_code == 401
        assert llm.call_count == 0

    def test_stale_signature_401(self, client, monkeypatch):
        monkeypatch.setattr(config, "SLACK_SIGNING_SECRET", "s3cret")
        body = json.dumps({"type": "url_verification", "challenge": "abc"})
        headers = signed_headers("s3cret", body, timestamp=1_000_000)
        assert client.post("/slack/events", content=body, headers=headers).status_code == 401

    def test_valid_signature_passes(self, client, monkeypatch):
        monkeypatch.setattr(config, "SLACK_SIGNING_SECRET", "s3cret")
        body = json.dumps({"type": "url_verification", "challenge": "abc"})
        r = client.post("/slack/events", content=body, headers=signed_headers("s3cret", body))
        assert r.status_code == 200
        assert r.text == "abc"


class TestAmbient:

    def test_keyword_message_gets_plain_reply(self, client, llm, slack_post):
        llm.return_value = "Happy to help plan! What date?"
        r = _post(client, _callback({"type": "message", "text": "we should plan a party", "channel": "C5", "user": "U2"}))
        assert r.status_code == 200
        msgs = llm.call_args.args[0]
        assert msgs[0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert llm.call_args.kwargs["max_tokens"] == 512
        assert _posted(slack_post) == [{"channel": "C5", "text": "Happy to help plan! What date?"}]

    def test_llm_failure_is_absorbed(self, client, llm, slack_post):
        llm.side_effect = LLMError("LLM call failed")
        r = _post(client, _callback({"type": "message", "text": "meeting tomorrow", "channel": "C5"}))
        assert r.status_code == 200
        assert slack_post.call_count == 0


class TestMention:

    def test_plan_is_published_immediately(self, client, llm, slack_post):
        llm.return_value = PLAN_REPLY
        r = _post(client, _mention())
        assert r.status_code == 200
        assert llm.call_args.args[0][1] == {"role": "user", "content": "plan a launch party"}
        assert llm.call_args.kwargs["timeout"] == 15
        posted = _posted(slack_post)
        assert len(posted) == 1
        assert posted[0]["channel"] == "C42"
        assert posted[0]["text"] == "Event Plan: Launch Party"
        assert posted[0]["blocks"][0]["text"]["text"] == "🎉 Launch Party"

    def test_plain_reply_posted_verbatim(self, client, llm, slack_post):
        llm.return_value = "How many guests?"
        _post(client, _mention())
        assert _posted(slack_post) == [{"channel": "C42", "text": "How many guests?"}]

    def test_timeout_gets_dedicated_apology(self, client, llm, slack_post):
        llm.side_effect = LLMTimeout("AI request timeout")
        r = _post(client, _mention())
        assert r.status_code == 200
        assert _posted(slack_post) == [{"channel": "C42", "text": TIMEOUT_APOLOGY}]

    def test_stalled_model_backend_gets_timeout_apology(self, client, slack_token, monkeypatch):
        monkeypatch.setattr("services.slack_service.MENTION_TIMEOUT", 0.3)
        release = threading.Event()
        slack_calls = []

        def route(url, **kwargs):
            # 모델 API와 Slack API가 같은 requests.post를 공유함
            if url.endswith("/chat/completions"):
                release.wait(5)
                return make_response({"choices": [{"message": {"content": "late reply"}}]})
            slack_calls.append(kwargs["json"])
            return make_response({"ok": True})

        with patch("requests.post", side_effect=route):
            started = time.monotonic()
            try:
                r = _post(client, _mention())
            finally:
                release.set()
        assert r.status_code == 200
        assert time.monotonic() - started < 3
        assert slack_calls == [{"channel": "C42", "text": TIMEOUT_APOLOGY}]

    def test_other_failure_gets_generic_apology(self, client, llm, slack_post):
        llm.side_effect = LLMError("LLM call failed")
        _post(client, _mention())
        text = _posted(slack_post)[0]["text"]
        assert text.startswith("Sorry, I encountered an error")
        assert "LLM call failed" in text

    def test_apology_delivery_failure_swallowed(self, client, llm, slack_token):
        llm.side_effect = LLMTimeout("AI request timeout")
        with patch("routes.slack_api.requests.post", side_effect=RuntimeError("boom")):
            r = _post(client, _mention())
        assert r.status_code == 200
        assert r.text == "OK"

    def test_modification_uses_narrowed_context(self, client, llm, slack_post):
        plan = sample_plan(title="Spring Gala", timeline=[f"Step {i}" for i in range(1, 10)])
        history = make_response({"ok": True, "messages": [format_plan_message(plan)]})
        llm.return_value = "Swapped steps 1 and 2."
        with patch("routes.slack_api.requests.get", return_value=history):
            _post(client, _mention("<@U0BOT> swap the first two steps"))
        system = llm.call_args.args[0][0]["content"]
        assert "Title: Spring Gala" in system
        assert "7. Step 7" in system
        assert "Step 8" not in system
        assert SYSTEM_PROMPT not in system

    def test_modification_without_context_adds_note(self, client, llm, slack_post):
        history = make_response({"ok": True, "messages": [{"text": "hi"}]})
        llm.return_value = "Which event?"
        with patch("routes.slack_api.requests.get", return_value=history):
            _post(client, _mention("<@U0BOT> change the venue"))
        msgs = llm.call_args.args[0]
        assert msgs[0]["content"] == SYSTEM_PROMPT
        assert msgs[1]["content"] == "change the venue" + NO_CONTEXT_NOTE
