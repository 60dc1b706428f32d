# schemas/event_schema.py
from pydantic import BaseModel, Field, ConfigDict, NonNegativeFloat, NonNegativeInt
from typing import Optional, List, Literal, Any, Dict, Union

PlanStatus = Literal["draft", "approved", "sent_to_slack"]


class EventPlan(BaseModel):
    """
    이벤트 플랜 (API 입출력용)

    승인 엔드포인트로 다시 들어올 때만 검증한다.
    LLM이 만든 플랜은 plan_codec에서 dict 그대로 전달됨.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    title: str
    date: str
    time: Optional[str] = None
    type: Optional[str] = None
    guests: List[str] = Field(default_factory=list)
    timeline: List[str] = Field(default_factory=list)
    # 정수 예산은 정수 그대로 돌려준다 (1500 -> 1500)
    budget: Union[NonNegativeInt, NonNegativeFloat] = 0
    venue: Optional[str] = None
    description: Optional[str] = None
    status: PlanStatus = "draft"
    slack_channel_id: Optional[str] = Field(None, alias="slackChannelId")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    def to_plan(self) -> Dict[str, Any]:
        # 내부 처리는 dict(camelCase)로 통일
        return self.model_dump(by_alias=True, exclude_none=True)


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatIn(BaseModel):
    """
    /api/chat 입력 스키마
    """
    messages: List[ChatMessage] = Field(default_factory=list)


class ChatOut(BaseModel):
    """
    /api/chat 출력 스키마. 플랜이 만들어졌으면 eventPlan/needsApproval이 채워짐
    """
    model_config = ConfigDict(populate_by_name=True)

    response: str
    event_plan: Optional[Dict[str, Any]] = Field(None, alias="eventPlan")
    needs_approval: Optional[bool] = Field(None, alias="needsApproval")


class ApproveIn(BaseModel):
    """
    /api/approve-event 입력 스키마
    """
    model_config = ConfigDict(populate_by_name=True)

    event_plan: EventPlan = Field(alias="eventPlan")
    slack_channel_id: Optional[str] = Field(None, alias="slackChannelId")
    approved: bool


class ApproveOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    event_plan: Optional[Dict[str, Any]] = Field(None, alias="eventPlan")
