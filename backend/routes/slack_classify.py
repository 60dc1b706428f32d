# routes/slack_classify.py
# 웹훅 페이로드 분류 (상태 없음, 요청 1건 단위)

from typing import Any, Dict

from routes.planner_prompts import EVENT_KEYWORDS
from schemas.slack_schema import (
    SlackEvent,
    Handshake,
    AmbientMessage,
    Mention,
    Ignored,
    Unrecognized,
)


def _has_keyword(text: str) -> bool:
    t = text.lower()
    return any(k in t for k in EVENT_KEYWORDS)


def classify_payload(payload: Any) -> SlackEvent:
    """
    검증된 웹훅 페이로드의 종류를 판별한다.

    - url_verification -> Handshake
    - message + bot_id -> Ignored (봇 메시지에 반응하면 무한 루프)
    - message + 텍스트 + 기획 키워드 -> AmbientMessage
    - app_mention + 텍스트 -> Mention
    - 나머지 -> Ignored / Unrecognized

    :param payload: JSON 디코딩된 페이로드
    :type payload: Any
    :return: 분류 결과 변형
    :rtype: SlackEvent
    """

    if not isinstance(payload, dict):
        return Unrecognized()

    ptype = payload.get("type")
    if ptype == "url_verification":
        return Handshake(challenge=str(payload.get("challenge") or ""))

    event = payload.get("event")
    if ptype != "event_callback" or not isinstance(event, dict):
        return Unrecognized(payload_type=ptype)

    etype = event.get("type")
    text = event.get("text") if isinstance(event.get("text"), str) else ""
    channel = event.get("channel") or ""

    if etype == "message":
        if event.get("bot_id"):
            return Ignored(reason="bot_message")
        if not text:
            return Ignored(reason="no_text")
        if not _has_keyword(text):
            return Ignored(reason="no_keyword")
        return AmbientMessage(channel=channel, text=text, user=event.get("user"), ts=event.get("ts"))

    if etype == "app_mention":
        if not text:
            return Ignored(reason="no_text")
        return Mention(channel=channel, text=text, user=event.get("user"), ts=event.get("ts"))

    return Unrecognized(payload_type=ptype, event_type=etype)
