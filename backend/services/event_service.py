# services/event_service.py
# 이벤트 플랜 상태 전이 + 승인/발송 흐름
# 저장소 없음: 플랜은 요청 안에서만 살아있고, 발송 후에는 Slack 메시지가 기록이 된다
import logging
from typing import Any, Dict, Optional, Tuple

import config
from routes.planner_time import _now_iso
from routes.slack_api import post_event_plan

logger = logging.getLogger(__name__)

# draft -> approved -> sent_to_slack (앞으로만 이동)
STATUS_ORDER = {"draft": 0, "approved": 1, "sent_to_slack": 2}


class InvalidTransition(ValueError):
    pass


def advance_status(plan: Dict[str, Any], target: str) -> Dict[str, Any]:
    """
    플랜 상태를 target으로 옮기고 updatedAt을 갱신한다.
    같은 상태로의 전이는 허용(시간만 갱신), 뒤로 가는 전이는 거부.

    :param plan: 이벤트 플랜 dict (제자리 수정)
    :type plan: Dict[str, Any]
    :param target: 'approved' | 'sent_to_slack'
    :type target: str
    :raises InvalidTransition: 역방향 전이
    :return: 같은 plan 객체
    :rtype: Dict[str, Any]
    """

    current = plan.get("status") or "draft"
    if STATUS_ORDER.get(target, -1) < STATUS_ORDER.get(current, 0):
        raise InvalidTransition(f"cannot move plan from {current} to {target}")
    plan["status"] = target
    plan["updatedAt"] = _now_iso()
    return plan


def publish_plan(plan: Dict[str, Any], channel: str, token: Optional[str] = None) -> Dict[str, Any]:
    """
    플랜을 채널로 보내고, 성공했을 때만 sent_to_slack으로 올린다.
    실패하면 상태는 그대로 두고 Slack 오류를 돌려준다(자동 재시도 없음).

    :param plan: 이벤트 플랜 dict
    :type plan: Dict[str, Any]
    :param channel: 발송할 채널 ID
    :type channel: str
    :return: {"ok": bool, "error"?: str}
    :rtype: Dict[str, Any]
    """

    plan["slackChannelId"] = channel
    result = post_event_plan(plan, token)
    if result.get("ok"):
        advance_status(plan, "sent_to_slack")
        logger.info("[PLAN] id=%s sent to channel=%s", plan.get("id"), channel)
    else:
        logger.warning("[PLAN] id=%s send failed channel=%s | %s", plan.get("id"), channel, result.get("error"))
    return result


def approve_plan(plan: Dict[str, Any], channel: Optional[str], approved: bool) -> Tuple[int, Dict[str, Any]]:
    """
    승인 엔드포인트 처리

    - approved=False: 상태 변경 없이 폐기 응답
    - approved=True: approved로 변경, 채널과 봇 토큰이 모두 있으면 발송까지 시도
      - 발송 성공 -> sent_to_slack
      - 발송 실패 -> approved 유지 + 실패 사유 반환

    :param plan: 이벤트 플랜 dict
    :type plan: Dict[str, Any]
    :param channel: 발송할 채널 ID(선택)
    :type channel: Optional[str]
    :param approved: 승인 여부
    :type approved: bool
    :return: (HTTP 상태 코드, 응답 본문)
    :rtype: Tuple[int, Dict[str, Any]]
    """

    if not approved:
        logger.info("[PLAN] id=%s discarded", plan.get("id"))
        return 200, {"success": True, "message": "Event plan discarded"}

    try:
        advance_status(plan, "approved")
    except InvalidTransition as e:
        return 409, {"success": False, "error": str(e), "eventPlan": plan}

    if channel and config.SLACK_BOT_TOKEN:
        result = publish_plan(plan, channel)
        if result.get("ok"):
            return 200, {
                "success": True,
                "message": "Event plan approved and sent to Slack!",
                "eventPlan": plan,
            }
        return 400, {
            "success": False,
            "error": f"Failed to post to Slack: {result.get('error')}",
            "eventPlan": plan,
        }

    return 200, {"success": True, "message": "Event plan approved!", "eventPlan": plan}
