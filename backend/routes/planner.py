# routes/planner.py
# 이벤트 기획 채팅 + 승인 라우터
# - /api/chat: LLM 대화, 플랜이 나오면 draft 상태로 돌려주고 승인을 기다림
# - /api/approve-event: 승인/폐기, 채널이 있으면 Slack 발송
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from routes.planner_prompts import SYSTEM_PROMPT, CHAT_MAX_TOKENS
from routes.planner_openai import chat_completion
from routes.plan_codec import decode_model_output
from schemas.event_schema import ChatIn, ChatOut, ApproveIn, ApproveOut
from services.event_service import approve_plan

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["planner"])


@router.post("/chat", response_model=ChatOut, response_model_exclude_none=True, response_model_by_alias=True)
def chat(input: ChatIn):
    """
    채팅 엔드포인트

    동작 개요
    - 클라이언트가 system 메시지를 안 보냈으면 공용 SYSTEM_PROMPT를 앞에 붙임
    - LLM 단일 호출
    - 응답이 플랜(JSON)이면 draft 플랜 + needsApproval=True, 아니면 원문 그대로

    :param input: 대화 메시지 목록
    :type input: ChatIn
    :return: {response, eventPlan?, needsApproval?}
    :rtype: ChatOut
    """

    msgs = [m.model_dump() for m in input.messages]
    if not any(m["role"] == "system" for m in msgs):
        msgs.insert(0, {"role": "system", "content": SYSTEM_PROMPT})

    try:
        raw = chat_completion(msgs, max_tokens=CHAT_MAX_TOKENS)
    except Exception as e:
        logger.error("Chat processing error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to process request"})

    plan, reply = decode_model_output(raw)
    if plan is None:
        return ChatOut(response=reply)

    logger.info("[PLAN] chat produced plan id=%s, waiting for approval", plan["id"])
    return ChatOut(response=reply, event_plan=plan, needs_approval=True)


@router.post("/approve-event", response_model=ApproveOut, response_model_exclude_none=True, response_model_by_alias=True)
def approve_event(input: ApproveIn):
    """
    플랜 승인/폐기 엔드포인트

    :param input: {eventPlan, slackChannelId?, approved}
    :type input: ApproveIn
    :return: {success, message|error, eventPlan?}
    :rtype: ApproveOut
    """

    try:
        status_code, body = approve_plan(input.event_plan.to_plan(), input.slack_channel_id, input.approved)
    except Exception as e:
        logger.error("Error handling event approval: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to process event approval"})

    if status_code != 200:
        return JSONResponse(status_code=status_code, content=body)
    return ApproveOut(**body)
