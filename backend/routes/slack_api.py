# routes/slack_api.py
# Slack Web API 래퍼 모듈
# - chat.postMessage / conversations.history 호출
# - 이벤트 플랜 발송 (승인 API, 멘션 처리에서 사용)
# - post_event_update / generate_oauth_url: 라우트에 연결하지 않은 라이브러리 헬퍼 (후속 업데이트 발송, 앱 설치 링크 생성용)
# - 실패는 예외 대신 {"ok": False, "error": ...}로 돌려준다 (Slack 응답 형식 그대로)
import logging, requests
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import config
from routes.planner_prompts import HISTORY_LIMIT
from routes.planner_time import _footer_datetime
from routes.plan_codec import format_plan_message

logger = logging.getLogger(__name__)

SLACK_API_BASE = "https://slack.com/api"
SLACK_OAUTH_URL = "https://slack.com/oauth/v2/authorize"


def _auth_header(token: str) -> Dict[str, str]:
    """
    봇 토큰으로 Authorization 헤더를 만든다.

    :param token: Slack 봇 토큰(xoxb-...)
    :type token: str
    :return: Bearer 헤더 + JSON Content-Type
    :rtype: Dict[str, str]
    """

    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json; charset=utf-8",
    }


def _token(token: Optional[str]) -> str:
    # 명시적으로 넘긴 토큰이 우선, 없으면 환경 설정값
    return token if token is not None else config.SLACK_BOT_TOKEN


def post_message(message: Dict[str, Any], token: Optional[str] = None) -> Dict[str, Any]:
    """
    채널에 메시지를 보낸다. (chat.postMessage)

    :param message: {channel, text, blocks?, thread_ts?}
    :type message: Dict[str, Any]
    :param token: 봇 토큰(생략 시 SLACK_BOT_TOKEN)
    :type token: Optional[str]
    :return: Slack 응답 {"ok": bool, "error"?: str, ...}
    :rtype: Dict[str, Any]
    """

    tok = _token(token)
    if not tok:
        logger.info("[SLACK] bot token not configured, skip postMessage")
        return {"ok": False, "error": "not_configured"}

    try:
        r = requests.post(
            f"{SLACK_API_BASE}/chat.postMessage",
            headers=_auth_header(tok),
            json=message,
            timeout=20,
        )
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("[SLACK] postMessage failed: %s", e)
        return {"ok": False, "error": "Network error"}

    if not isinstance(data, dict):
        return {"ok": False, "error": f"unexpected response ({r.status_code})"}
    if not data.get("ok"):
        logger.error("[SLACK] postMessage error channel=%s | %s", message.get("channel"), data.get("error"))
    return data


def get_channel_history(channel: str, limit: int = HISTORY_LIMIT, token: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    채널의 최근 메시지를 최신순으로 가져온다. (conversations.history)
    HTTP 오류나 ok=false면 빈 리스트를 돌려준다.

    :param channel: 채널 ID
    :type channel: str
    :param limit: 가져올 메시지 수
    :type limit: int
    :param token: 봇 토큰(생략 시 SLACK_BOT_TOKEN)
    :type token: Optional[str]
    :return: 메시지 리스트(최신순)
    :rtype: List[Dict[str, Any]]
    """

    tok = _token(token)
    if not tok or not channel:
        return []

    try:
        r = requests.get(
            f"{SLACK_API_BASE}/conversations.history",
            headers=_auth_header(tok),
            params={"channel": channel, "limit": limit},
            timeout=20,
        )
    except requests.RequestException as e:
        logger.error("[SLACK] history fetch failed channel=%s | %s", channel, e)
        return []

    if not r.ok:
        logger.error("[SLACK] history HTTP %s channel=%s", r.status_code, channel)
        return []
    try:
        data = r.json()
    except ValueError:
        logger.error("[SLACK] history response is not JSON")
        return []
    if not data.get("ok"):
        logger.warning("[SLACK] history API error channel=%s | %s", channel, data.get("error"))
        return []

    messages = data.get("messages") or []
    logger.debug("[SLACK] history channel=%s -> %d messages", channel, len(messages))
    return messages


def post_event_plan(plan: Dict[str, Any], token: Optional[str] = None) -> Dict[str, Any]:
    """
    이벤트 플랜을 Block Kit 메시지로 발송한다. 채널이 없으면 보내지 않고 실패.

    :param plan: 이벤트 플랜 dict (slackChannelId 필요)
    :type plan: Dict[str, Any]
    :return: {"ok": bool, "error"?: str}
    :rtype: Dict[str, Any]
    """

    if not plan.get("slackChannelId"):
        return {"ok": False, "error": "No Slack channel ID specified"}
    return post_message(format_plan_message(plan), token)


def post_event_update(channel: str, update_text: str, plan: Dict[str, Any], token: Optional[str] = None) -> Dict[str, Any]:
    """
    기존 플랜에 대한 후속 업데이트 메시지를 보낸다.
    """

    title = plan.get("title", "")
    message = {
        "channel": channel,
        "text": f"Event Update: {title}",
        "blocks": [
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f'*Update for "{title}":*\n{update_text}'},
            },
            {
                "type": "context",
                "elements": [
                    {"type": "mrkdwn", "text": f"Updated by AI Event Planner • {_footer_datetime()}"},
                ],
            },
        ],
    }
    return post_message(message, token)


def generate_oauth_url(client_id: str, scopes: List[str], redirect_uri: Optional[str] = None) -> str:
    """
    앱 설치용 Slack OAuth URL을 만든다.
    """

    params = {
        "client_id": client_id,
        "scope": ",".join(scopes),
        "redirect_uri": redirect_uri or "/slack/oauth",
    }
    return f"{SLACK_OAUTH_URL}?{urlencode(params)}"
