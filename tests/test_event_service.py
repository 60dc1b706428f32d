from unittest.mock import patch

import pytest

from conftest import sample_plan
from services.event_service import InvalidTransition, advance_status, approve_plan, publish_plan


class TestAdvanceStatus:

    def test_forward_moves_refresh_updated_at(self):
        plan = sample_plan()
        advance_status(plan, "approved")
        assert plan["status"] == "approved"
        assert plan["updatedAt"] != plan["createdAt"]
        advance_status(plan, "sent_to_slack")
        assert plan["status"] == "sent_to_slack"

    def test_backward_move_rejected(self):
        plan = sample_plan(status="sent_to_slack")
        with pytest.raises(InvalidTransition):
            advance_status(plan, "approved")
        assert plan["status"] == "sent_to_slack"

    def test_same_status_allowed(self):
        plan = sample_plan(status="approved")
        advance_status(plan, "approved")
        assert plan["status"] == "approved"


class TestPublishPlan:

    def test_success_promotes(self):
        plan = sample_plan(status="approved")
        with patch("services.event_service.post_event_plan", return_value={"ok": True}) as send:
            result = publish_plan(plan, "C1")
        assert result["ok"]
        assert plan["status"] == "sent_to_slack"
        assert send.call_args.args[0]["slackChannelId"] == "C1"

    def test_failure_keeps_status(self):
        plan = sample_plan()
        with patch("services.event_service.post_event_plan", return_value={"ok": False, "error": "not_in_channel"}):
            result = publish_plan(plan, "C1")
        assert result == {"ok": False, "error": "not_in_channel"}
        assert plan["status"] == "draft"


class TestApprovePlan:

    def test_discard(self):
        plan = sample_plan()
        with patch("services.event_service.post_event_plan") as send:
            code, body = approve_plan(plan, "C1", False)
        assert code == 200
        assert plan["status"] == "draft"
        assert plan["updatedAt"] == sample_plan()["updatedAt"]
        send.assert_not_called()

    def test_delivery_failure_surfaces_error(self, slack_token):
        plan = sample_plan()
        with patch("services.event_service.post_event_plan", return_value={"ok": False, "error": "invalid_auth"}):
            code, body = approve_plan(plan, "C1", True)
        assert code == 400
        assert body["error"] == "Failed to post to Slack: invalid_auth"
        assert plan["status"] == "approved"
