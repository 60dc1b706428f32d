# services/slack_service.py
# Slack 웹훅 이벤트 처리 (일반 메시지 / 멘션)
# 결과는 Outcome으로 돌려주고, 200 응답으로 접는 것은 웹훅 라우터에서만 한다
import logging
import re
from typing import Any, Dict, List

import config
from routes.planner_prompts import (
    SYSTEM_PROMPT,
    MODIFY_PROMPT_TEMPLATE,
    MODIFY_KEYWORDS,
    MODIFY_TIMELINE_LIMIT,
    NO_CONTEXT_NOTE,
    NO_TIMELINE_TEXT,
    AMBIENT_MAX_TOKENS,
    MENTION_MAX_TOKENS,
    MENTION_TIMEOUT,
    TIMEOUT_APOLOGY,
    ERROR_APOLOGY,
)
from routes.planner_openai import chat_completion, LLMTimeout
from routes.plan_codec import decode_model_output, TIMELINE_LINE_RE
from routes.slack_api import post_message
from routes.slack_context import find_recent_plan
from schemas.slack_schema import AmbientMessage, Mention, Outcome
from services.event_service import publish_plan

logger = logging.getLogger(__name__)

MENTION_RE = re.compile(r"<@[A-Z0-9]+>")


def _clean_mention(text: str) -> str:
    return MENTION_RE.sub("", text or "").strip()


def _is_modification(text: str) -> bool:
    t = text.lower()
    return any(k in t for k in MODIFY_KEYWORDS)


def _delivery_outcome(result: Dict[str, Any]) -> Outcome:
    if result.get("ok"):
        return Outcome(ok=True)
    kind = "not_configured" if result.get("error") == "not_configured" else "delivery_error"
    return Outcome(ok=False, kind=kind, error=result.get("error"))


def build_modify_prompt(plan: Dict[str, Any]) -> str:
    """
    기존 플랜 수정용 축약 프롬프트를 만든다. (제목 + 타임라인 앞 7개만)

    :param plan: 컨텍스트에서 복원한 부분 플랜
    :type plan: Dict[str, Any]
    :return: 시스템 프롬프트 문자열
    :rtype: str
    """

    timeline = plan.get("timeline") or []
    lines = [
        f"{i}. {TIMELINE_LINE_RE.sub('', str(item), count=1)}"
        for i, item in enumerate(timeline[:MODIFY_TIMELINE_LIMIT], 1)
    ]
    return MODIFY_PROMPT_TEMPLATE.format(
        title=plan.get("title") or "Untitled event",
        timeline="\n".join(lines) or NO_TIMELINE_TEXT,
    )


def build_mention_messages(text: str, channel: str) -> List[Dict[str, str]]:
    """
    멘션 텍스트로 LLM 메시지를 구성한다.

    - 수정 키워드가 있으면 채널 히스토리에서 최근 플랜을 찾아 축약 프롬프트 사용
    - 플랜을 못 찾으면 기본 프롬프트 + '컨텍스트 없음' 안내를 덧붙임
    - 그 외에는 기본 프롬프트

    :param text: 멘션 마크업을 제거한 사용자 텍스트
    :type text: str
    :param channel: 채널 ID
    :type channel: str
    :return: [{role, content}] 리스트
    :rtype: List[Dict[str, str]]
    """

    if _is_modification(text) and config.SLACK_BOT_TOKEN:
        recent = find_recent_plan(channel)
        if recent:
            return [
                {"role": "system", "content": build_modify_prompt(recent)},
                {"role": "user", "content": text},
            ]
        logger.info("[SLACK] no recent plan in channel=%s", channel)
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"{text}{NO_CONTEXT_NOTE}"},
        ]

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": text},
    ]


def handle_ambient_message(evt: AmbientMessage) -> Outcome:
    """
    기획 키워드가 들어간 일반 메시지 처리. 단발성 LLM 호출 후 답변을 그대로 게시(플랜 추출 안 함).

    :param evt: 분류된 일반 메시지
    :type evt: AmbientMessage
    :return: 처리 결과
    :rtype: Outcome
    """

    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": evt.text},
    ]
    try:
        reply = chat_completion(messages, max_tokens=AMBIENT_MAX_TOKENS)
    except LLMTimeout as e:
        logger.error("[SLACK] ambient LLM timeout channel=%s", evt.channel)
        return Outcome(ok=False, kind="timeout", error=str(e))
    except Exception as e:
        logger.error("[SLACK] ambient LLM failed channel=%s: %s", evt.channel, e)
        return Outcome(ok=False, kind="llm_error", error=str(e))

    return _delivery_outcome(post_message({"channel": evt.channel, "text": reply}))


def handle_mention(evt: Mention) -> Outcome:
    """
    봇 멘션 처리

    1. 멘션 마크업 제거 후 프롬프트 구성(build_mention_messages)
    2. LLM 호출(15초 제한)
    3. 플랜이면 즉시 발송(승인 단계 없음), 아니면 답변 텍스트 게시
    4. 실패 시 사과 메시지 게시(타임아웃은 별도 문구). 사과 메시지 발송 실패는 로그만 남김

    :param evt: 분류된 멘션
    :type evt: Mention
    :return: 처리 결과
    :rtype: Outcome
    """

    text = _clean_mention(evt.text)
    logger.info("[SLACK] mention channel=%s text='%s'", evt.channel, text[:80])

    try:
        messages = build_mention_messages(text, evt.channel)
        reply = chat_completion(messages, max_tokens=MENTION_MAX_TOKENS, timeout=MENTION_TIMEOUT)

        plan, _ = decode_model_output(reply)
        if plan is not None:
            # 멘션 경로는 승인 없이 바로 발송(채팅 API와 다름)
            return _delivery_outcome(publish_plan(plan, evt.channel))

        return _delivery_outcome(post_message({"channel": evt.channel, "text": reply}))

    except LLMTimeout as e:
        logger.error("[SLACK] mention LLM timeout channel=%s", evt.channel)
        outcome = Outcome(ok=False, kind="timeout", error=str(e))
        apology = TIMEOUT_APOLOGY
    except Exception as e:
        logger.error("[SLACK] mention processing failed channel=%s: %s", evt.channel, e)
        outcome = Outcome(ok=False, kind="llm_error", error=str(e))
        apology = ERROR_APOLOGY.format(error=e)

    try:
        result = post_message({"channel": evt.channel, "text": apology})
        if not result.get("ok"):
            logger.error("[SLACK] failed to send apology channel=%s | %s", evt.channel, result.get("error"))
    except Exception as e:
        logger.error("[SLACK] failed to send apology channel=%s: %s", evt.channel, e)
    return outcome
