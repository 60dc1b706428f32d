# routes/slack_context.py
# 대화 컨텍스트 복원 - 채널 최근 메시지에서 가장 최근 이벤트 플랜을 찾는다
# 별도 저장소가 없으므로 Slack 메시지 히스토리가 곧 플랜 기록임

import logging
from typing import Any, Dict, List, Optional

from routes.planner_prompts import HISTORY_LIMIT
from routes.slack_api import get_channel_history
from routes.plan_codec import PLAN_GLYPH, decode_plan_blocks, decode_plan_text

logger = logging.getLogger(__name__)

# 헤더 블록에서 플랜으로 볼 표시
HEADER_MARKERS = (PLAN_GLYPH, "Party", "Event")
# 블록이 없을 때 텍스트에서 플랜으로 볼 표시
TEXT_MARKERS = ("Event Plan:", PLAN_GLYPH, "Timeline:")


def _has_event_header(blocks: List[Dict[str, Any]]) -> bool:
    for block in blocks:
        if not isinstance(block, dict) or block.get("type") != "header":
            continue
        text_obj = block.get("text")
        text = (text_obj.get("text") or "") if isinstance(text_obj, dict) else ""
        if any(mk in text for mk in HEADER_MARKERS):
            return True
    return False


def find_plan_in_messages(messages: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    메시지 목록(최신순)에서 플랜처럼 보이는 첫 메시지를 부분 플랜으로 복원한다.

    - 이벤트 헤더 블록이 있으면 블록에서 추출
    - 없으면 텍스트 표시("Event Plan:", 🎉, "Timeline:")로 판단해 텍스트에서 추출
    - 첫 번째 일치에서 멈춤(여러 메시지의 필드를 합치지 않음)

    :param messages: Slack 메시지 리스트(최신순)
    :type messages: List[Dict[str, Any]]
    :return: 부분 플랜 dict 또는 None
    :rtype: Optional[Dict[str, Any]]
    """

    for msg in messages:
        if not isinstance(msg, dict):
            continue
        blocks = msg.get("blocks") if isinstance(msg.get("blocks"), list) else []
        if blocks and _has_event_header(blocks):
            logger.debug("[CONTEXT] plan header found ts=%s", msg.get("ts"))
            return decode_plan_blocks(blocks)

        text = msg.get("text") if isinstance(msg.get("text"), str) else ""
        if text and any(mk in text for mk in TEXT_MARKERS):
            logger.debug("[CONTEXT] plan-like text found ts=%s", msg.get("ts"))
            return decode_plan_text(text)

    return None


def find_recent_plan(channel_id: str, token: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    채널의 최근 5개 메시지에서 가장 최근 플랜을 찾는다.
    None은 오류가 아니라 '컨텍스트 부족'을 뜻함.

    :param channel_id: Slack 채널 ID
    :type channel_id: str
    :param token: 봇 토큰(생략 시 SLACK_BOT_TOKEN)
    :type token: Optional[str]
    :return: 부분 플랜 dict 또는 None
    :rtype: Optional[Dict[str, Any]]
    """

    messages = get_channel_history(channel_id, HISTORY_LIMIT, token)
    plan = find_plan_in_messages(messages)
    logger.info("[CONTEXT] channel=%s messages=%d plan_found=%s", channel_id, len(messages), bool(plan))
    return plan
