# schemas/slack_schema.py
# Slack 웹훅 페이로드 분류 결과 (태그드 변형) + 처리 결과
from pydantic import BaseModel
from typing import Optional, Literal, Union

OutcomeKind = Literal["ok", "ignored", "timeout", "llm_error", "delivery_error", "not_configured"]


class Handshake(BaseModel):
    """url_verification: challenge 토큰을 그대로 돌려줘야 함"""
    kind: Literal["handshake"] = "handshake"
    challenge: str = ""


class AmbientMessage(BaseModel):
    """봇을 부르지 않은 일반 메시지 중 기획 키워드가 들어간 것"""
    kind: Literal["ambient"] = "ambient"
    channel: str
    text: str
    user: Optional[str] = None
    ts: Optional[str] = None


class Mention(BaseModel):
    """app_mention: 봇을 직접 호출한 메시지"""
    kind: Literal["mention"] = "mention"
    channel: str
    text: str
    user: Optional[str] = None
    ts: Optional[str] = None


class Ignored(BaseModel):
    """알고 있는 타입이지만 반응하지 않는 경우(봇 메시지, 키워드 없음 등)"""
    kind: Literal["ignored"] = "ignored"
    reason: str


class Unrecognized(BaseModel):
    kind: Literal["unrecognized"] = "unrecognized"
    payload_type: Optional[str] = None
    event_type: Optional[str] = None


SlackEvent = Union[Handshake, AmbientMessage, Mention, Ignored, Unrecognized]


class Outcome(BaseModel):
    """
    백그라운드 처리 결과. 웹훅 경계에서만 로그 후 200으로 접힌다.
    """
    ok: bool
    kind: OutcomeKind = "ok"
    error: Optional[str] = None
