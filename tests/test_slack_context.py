from unittest.mock import patch

from conftest import make_response, sample_plan
from routes.plan_codec import format_plan_message
from routes.slack_context import find_plan_in_messages, find_recent_plan


def _chatter(text):
    return {"type": "message", "user": "U1", "text": text, "ts": "1.0"}


class TestFindPlanInMessages:

    def test_third_message_plan_is_returned(self):
        plan_msg = format_plan_message(sample_plan(title="Spring Gala", slackChannelId="C1"))
        older_plan = format_plan_message(sample_plan(title="Old Event", slackChannelId="C1"))
        messages = [
            _chatter("sounds good"),
            _chatter("can we move it?"),
            {"type": "message", "bot_id": "B1", **plan_msg},
            _chatter("thanks"),
            {"type": "message", "bot_id": "B1", **older_plan},
        ]
        found = find_plan_in_messages(messages)
        assert found["title"] == "Spring Gala"
        assert found["timeline"] == ["Book venue", "Send invites", "Order catering"]

    def test_text_markers_used_when_no_header(self):
        messages = [_chatter("hello"), _chatter("🎉 Picnic\nTimeline:\n1. Pack food\n2. Drive")]
        found = find_plan_in_messages(messages)
        assert found == {"title": "Picnic", "timeline": ["Pack food", "Drive"]}

    def test_no_plan_returns_none(self):
        assert find_plan_in_messages([_chatter("hi"), _chatter("lunch?")]) is None

    def test_first_match_wins_without_merging(self):
        newer = {"text": "Event Plan: Newer"}
        older = format_plan_message(sample_plan(title="Older Event"))
        found = find_plan_in_messages([newer, older])
        assert found == {"title": "Newer"}

    def test_malformed_blocks_are_skipped(self):
        broken = {"blocks": [{"type": "header", "text": "plain string"}]}
        assert find_plan_in_messages([broken]) is None

        partly = {"blocks": [
            {"type": "header", "text": {"type": "plain_text", "text": "🎉 Gala"}},
            {"type": "section", "fields": ["*Date:*\nsoon", {"type": "mrkdwn", "text": "*Venue:*\nHall"}]},
        ]}
        found = find_plan_in_messages([broken, partly])
        assert found["title"] == "Gala"
        assert found["venue"] == "Hall"
        assert "date" not in found


class TestFindRecentPlan:

    def test_fetches_five_messages(self, slack_token):
        plan_msg = format_plan_message(sample_plan(slackChannelId="C9"))
        resp = make_response({"ok": True, "messages": [_chatter("hi"), plan_msg]})
        with patch("routes.slack_api.requests.get", return_value=resp) as get:
            found = find_recent_plan("C9")
        assert found["title"] == "Team Offsite"
        assert get.call_args.kwargs["params"] == {"channel": "C9", "limit": 5}
        assert get.call_args.kwargs["headers"]["Authorization"] == "Bearer xoxb-test"

    def test_api_error_means_no_context(self, slack_token):
        resp = make_response({"ok": False, "error": "channel_not_found"})
        with patch("routes.slack_api.requests.get", return_value=resp):
            assert find_recent_plan("C9") is None

    def test_http_error_means_no_context(self, slack_token):
        resp = make_response({"ok": True, "messages": []}, status_code=500)
        with patch("routes.slack_api.requests.get", return_value=resp):
            assert find_recent_plan("C9") is None

    def test_without_token_no_call(self):
        with patch("routes.slack_api.requests.get") as get:
            assert find_recent_plan("C9") is None
        get.assert_not_called()
