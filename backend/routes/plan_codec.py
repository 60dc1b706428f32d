# routes/plan_codec.py
# 이벤트 플랜 <-> 텍스트 변환
# - LLM 응답(JSON/코드블록) -> 플랜 dict
# - 플랜 dict -> Slack Block Kit 메시지
# - Slack 메시지(blocks 또는 대체 텍스트) -> 부분 플랜 (컨텍스트 복원용, 손실 있음)

import json
import logging
import re
import uuid
from typing import Any, Dict, List, Optional, Tuple

from routes.planner_prompts import CREATE_EVENT_ACTION
from routes.planner_time import _now_iso, _long_date, _long_date_to_iso, _footer_date

logger = logging.getLogger(__name__)

PLAN_GLYPH = "🎉"

# ```json { ... } ``` 형태의 코드블록
CODE_BLOCK_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")
# 헤더 앞의 장식 이모지 제거
HEADER_GLYPH_RE = re.compile(r"^(?:🎉|:tada:)\s*")
# "1. 텍스트" 형태의 타임라인 라인
TIMELINE_LINE_RE = re.compile(r"^\d+\.\s*")
# 대체 텍스트에서 제목/타임라인 찾기
TEXT_TITLE_RE = re.compile(r"(?:🎉|Event Plan:)\s*([^\n]+)")
TEXT_TIMELINE_RE = re.compile(r"Timeline:\*?\s*\n([\s\S]+?)(?=\n\*|$)")

# 필드 블록 라벨(순서 고정)
LABEL_DATE = "*Date:*"
LABEL_GUESTS = "*Expected Guests:*"
LABEL_BUDGET = "*Budget:*"
LABEL_VENUE = "*Venue:*"
LABEL_DESCRIPTION = "*Description:*"
LABEL_TIMELINE = "*Timeline:*"
LABEL_GUEST_LIST = "*📧 Guest List:*"


# LLM 응답 -> 플랜
def decode_model_output(text: Any) -> Tuple[Optional[Dict[str, Any]], str]:
    """
    LLM 응답에서 이벤트 플랜을 찾아낸다.

    1. ```json {...}``` 코드블록이 있으면 그 안쪽만, 없으면 전체 텍스트를 JSON으로 파싱
    2. action == "create_event" 이고 event가 객체일 때만 플랜으로 인정
    3. id/status/시간 필드를 채우고 나머지는 event 값을 그대로 복사(타입 보정 안 함)

    플랜이 아니면 실패가 아니라 '일반 대화'라는 뜻이므로 (None, 원문)을 돌려준다.

    :param text: LLM 응답 원문
    :type text: Any
    :return: (플랜 dict 또는 None, 사용자에게 보여줄 답변)
    :rtype: Tuple[Optional[Dict[str, Any]], str]
    """

    if isinstance(text, dict):
        parsed = text
        text = json.dumps(text, ensure_ascii=False)
    else:
        text = "" if text is None else str(text)
        m = CODE_BLOCK_RE.search(text)
        json_text = m.group(1) if m else text
        try:
            parsed = json.loads(json_text)
        except ValueError:
            return None, text

    if not isinstance(parsed, dict):
        return None, text
    event = parsed.get("event")
    if parsed.get("action") != CREATE_EVENT_ACTION or not isinstance(event, dict):
        return None, text

    plan = _synthesize_plan(event)
    logger.info("[PLAN] decoded plan id=%s title=%s", plan["id"], plan.get("title"))
    reply = parsed.get("response")
    if not isinstance(reply, str) or not reply.strip():
        reply = f"Here's your event plan: {plan.get('title', 'Untitled event')}"
    return plan, reply


def _synthesize_plan(event: Dict[str, Any]) -> Dict[str, Any]:
    # LLM이 준 필드가 먼저, 시스템 필드(status/시간)가 덮어씀
    now = _now_iso()
    plan: Dict[str, Any] = {"id": str(uuid.uuid4()), **event}
    plan["status"] = "draft"
    plan["createdAt"] = now
    plan["updatedAt"] = now
    return plan


# 플랜 -> Slack 메시지
def _format_budget(budget: Any) -> str:
    """
    예산을 '$1,500' 형식으로 만든다. 숫자가 아니면 원문 그대로 붙임.
    """

    if isinstance(budget, bool):
        return f"${budget}"
    if isinstance(budget, float) and budget.is_integer():
        budget = int(budget)
    if isinstance(budget, (int, float)):
        return f"${budget:,}"
    return f"${budget if budget is not None else 0}"


def _mrkdwn(text: str) -> Dict[str, str]:
    return {"type": "mrkdwn", "text": text}


def build_plan_blocks(plan: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    플랜을 Block Kit 블록 목록으로 변환한다.

    순서: 헤더 -> 필드(날짜/인원/예산/장소) -> 설명? -> 타임라인? -> 게스트? -> 구분선 -> 푸터

    :param plan: 이벤트 플랜 dict
    :type plan: Dict[str, Any]
    :return: Slack blocks
    :rtype: List[Dict[str, Any]]
    """

    guests = plan.get("guests") or []
    timeline = plan.get("timeline") or []

    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": f"{PLAN_GLYPH} {plan.get('title', '')}"},
        },
        {
            "type": "section",
            "fields": [
                _mrkdwn(f"{LABEL_DATE}\n{_long_date(plan.get('date'))}"),
                _mrkdwn(f"{LABEL_GUESTS}\n{len(guests) if guests else 'TBD'}"),
                _mrkdwn(f"{LABEL_BUDGET}\n{_format_budget(plan.get('budget'))}"),
                _mrkdwn(f"{LABEL_VENUE}\n{plan.get('venue') or 'TBD'}"),
            ],
        },
    ]

    if plan.get("description"):
        blocks.append({"type": "section", "text": _mrkdwn(f"{LABEL_DESCRIPTION}\n{plan['description']}")})

    if timeline:
        timeline_text = "\n".join(f"{i}. {item}" for i, item in enumerate(timeline, 1))
        blocks.append({"type": "section", "text": _mrkdwn(f"{LABEL_TIMELINE}\n{timeline_text}")})

    if guests:
        guest_text = "\n".join(f"• {g}" for g in guests)
        blocks.append({"type": "section", "text": _mrkdwn(f"{LABEL_GUEST_LIST}\n{guest_text}")})

    blocks.append({"type": "divider"})
    blocks.append({
        "type": "context",
        "elements": [_mrkdwn(f"Event created by AI Event Planner • {_footer_date()}")],
    })
    return blocks


def format_plan_message(plan: Dict[str, Any]) -> Dict[str, Any]:
    """
    chat.postMessage 본문을 만든다. 채널은 플랜의 slackChannelId를 그대로 사용
    (없으면 빈 문자열 -> 발송 쪽에서 실패 처리).

    :param plan: 이벤트 플랜 dict
    :type plan: Dict[str, Any]
    :return: {channel, text, blocks}
    :rtype: Dict[str, Any]
    """

    return {
        "channel": plan.get("slackChannelId") or "",
        "text": f"Event Plan: {plan.get('title', '')}",  # 알림용 대체 텍스트
        "blocks": build_plan_blocks(plan),
    }


# Slack 메시지 -> 부분 플랜
def _parse_budget(s: str) -> Any:
    cleaned = re.sub(r"[$,]", "", s).strip()
    try:
        num = float(cleaned)
    except ValueError:
        return cleaned
    return int(num) if num.is_integer() else num


def _timeline_items(text: str) -> List[str]:
    # 번호가 붙은 줄만 남기고 번호는 제거
    lines = [ln.strip() for ln in text.split("\n")]
    return [TIMELINE_LINE_RE.sub("", ln, count=1) for ln in lines if TIMELINE_LINE_RE.match(ln)]


def _value_after_label(text: str, label: str) -> Optional[str]:
    """
    '라벨\\n값' 형태에서 라벨 다음 줄의 값을 꺼낸다.
    """

    lines = text.split("\n")
    for i, line in enumerate(lines):
        if line.strip().startswith(label) and i + 1 < len(lines):
            value = lines[i + 1].strip()
            return value or None
    return None


def _apply_field(plan: Dict[str, Any], text: str) -> None:
    date_v = _value_after_label(text, LABEL_DATE)
    if date_v:
        plan["date"] = _long_date_to_iso(date_v)
    budget_v = _value_after_label(text, LABEL_BUDGET)
    if budget_v:
        plan["budget"] = _parse_budget(budget_v)
    venue_v = _value_after_label(text, LABEL_VENUE)
    if venue_v and venue_v != "TBD":
        plan["venue"] = venue_v


def decode_plan_blocks(blocks: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Block Kit 메시지에서 플랜을 역추출한다. (best-effort)
    복원 가능한 필드: title, date, budget, venue, timeline (게스트/설명은 복원 안 됨)

    :param blocks: Slack blocks
    :type blocks: List[Dict[str, Any]]
    :return: 부분 플랜 dict, 아무것도 못 찾으면 None
    :rtype: Optional[Dict[str, Any]]
    """

    plan: Dict[str, Any] = {}
    for block in blocks or []:
        if not isinstance(block, dict):
            continue
        btype = block.get("type")
        text_obj = block.get("text")
        text = (text_obj.get("text") or "") if isinstance(text_obj, dict) else ""

        if btype == "header" and text and "title" not in plan:
            title = HEADER_GLYPH_RE.sub("", text.strip()).strip()
            if title:
                plan["title"] = title
        elif btype == "section":
            for field in block.get("fields") or []:
                if isinstance(field, dict):
                    _apply_field(plan, field.get("text") or "")
            if text.startswith(LABEL_TIMELINE):
                items = _timeline_items(text[len(LABEL_TIMELINE):])
                if items:
                    plan["timeline"] = items

    return plan or None


def decode_plan_text(text: str) -> Optional[Dict[str, Any]]:
    """
    대체 텍스트(또는 블록이 없는 메시지)에서 플랜을 역추출한다. (best-effort)
    """

    if not text:
        return None
    plan: Dict[str, Any] = {}

    m = TEXT_TITLE_RE.search(text)
    if m and m.group(1).strip():
        plan["title"] = m.group(1).strip()

    _apply_field(plan, text)

    m = TEXT_TIMELINE_RE.search(text)
    if m:
        items = _timeline_items(m.group(1))
        if items:
            plan["timeline"] = items

    return plan or None


def decode_plan_message(message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Slack 메시지(blocks 우선, 없으면 text)에서 부분 플랜을 꺼낸다.
    """

    blocks = message.get("blocks")
    if blocks:
        plan = decode_plan_blocks(blocks)
        if plan:
            return plan
    return decode_plan_text(message.get("text") or "")
