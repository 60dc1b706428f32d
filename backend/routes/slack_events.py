# routes/slack_events.py
# Slack Events API 웹훅 라우터
# - 서명 검증 -> 페이로드 분류 -> (멘션/일반 메시지) 백그라운드 처리
# - 서명 실패(401)를 제외하면 항상 200. Slack은 2xx가 아니면 같은 이벤트를 재전송함
import json
import logging

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import PlainTextResponse

import config
from routes.slack_signature import verify_slack_signature
from routes.slack_classify import classify_payload
from schemas.slack_schema import Handshake, AmbientMessage, Mention, Outcome
from services.slack_service import handle_ambient_message, handle_mention

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/slack", tags=["slack"])


def _run_and_log(handler, evt) -> None:
    """
    백그라운드 처리 래퍼. 여기서 모든 실패가 로그로만 남는다.
    """

    try:
        outcome: Outcome = handler(evt)
    except Exception as e:
        logger.error("[SLACK] %s crashed: %s", handler.__name__, e)
        return
    if outcome.ok:
        logger.info("[SLACK] %s ok channel=%s", evt.kind, evt.channel)
    else:
        logger.warning("[SLACK] %s failed channel=%s kind=%s error=%s",
                       evt.kind, evt.channel, outcome.kind, outcome.error)


@router.post("/events")
async def slack_events(request: Request, background_tasks: BackgroundTasks):
    """
    Slack 이벤트 수신 엔드포인트

    동작 개요
    - 서명 시크릿이 설정되어 있으면 '원본 바디'로 서명 검증(실패 시 401)
    - url_verification이면 challenge를 그대로 반환
    - app_mention / 키워드 메시지는 백그라운드로 넘기고 즉시 200 OK
    - 파싱 실패/알 수 없는 이벤트도 200 OK

    :param request: 원본 요청
    :type request: Request
    :param background_tasks: 응답 후 실행할 작업 큐
    :type background_tasks: BackgroundTasks
    :return: 'OK' 또는 challenge 문자열
    :rtype: PlainTextResponse
    """

    body = await request.body()

    if config.SLACK_SIGNING_SECRET:
        ok = verify_slack_signature(
            config.SLACK_SIGNING_SECRET,
            request.headers.get("X-Slack-Request-Timestamp", ""),
            body,
            request.headers.get("X-Slack-Signature", ""),
        )
        if not ok:
            return PlainTextResponse("Invalid signature", status_code=401)

    try:
        payload = json.loads(body)
    except ValueError as e:
        logger.warning("[SLACK] failed to parse payload: %s", e)
        return PlainTextResponse("OK")

    evt = classify_payload(payload)
    logger.debug("[SLACK] classified as %s", evt.kind)

    if isinstance(evt, Handshake):
        logger.info("[SLACK] url verification challenge")
        return PlainTextResponse(evt.challenge)
    if isinstance(evt, Mention):
        background_tasks.add_task(_run_and_log, handle_mention, evt)
    elif isinstance(evt, AmbientMessage):
        background_tasks.add_task(_run_and_log, handle_ambient_message, evt)

    return PlainTextResponse("OK")
