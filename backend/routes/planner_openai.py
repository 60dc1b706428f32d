# routes/planner_openai.py
# LLM 호출 - OpenAI Chat Completions (단일 호출)

import requests, logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import Dict, List, Any, Optional

import config

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """LLM 호출 실패(HTTP 오류, 응답 형식 오류, 네트워크 오류)"""


class LLMNotConfigured(LLMError):
    """OPENAI_API_KEY 미설정"""


class LLMTimeout(LLMError):
    """제한 시간 초과. 멘션 처리에서는 별도 안내 메시지로 구분함"""


# 전체 호출 시간 제한용 워커 (requests의 timeout은 소켓 읽기 1회 단위로만 걸림)
_EXECUTOR = ThreadPoolExecutor(max_workers=8, thread_name_prefix="llm")


def _post_completion(messages: List[Dict[str, Any]], max_tokens: int, timeout: Optional[float]) -> requests.Response:
    return requests.post(
        f"{config.OPENAI_BASE}/chat/completions",
        headers={
            "Authorization": f"Bearer {config.OPENAI_API_KEY}",
            "Content-Type": "application/json",
        },
        json={
            "model": config.OPENAI_MODEL,
            "temperature": 0.2,
            "max_tokens": max_tokens,
            "messages": messages,
        },
        timeout=timeout,
    )


def chat_completion(
    messages: List[Dict[str, Any]],
    max_tokens: int = 1024,
    timeout: Optional[float] = 45,
) -> str:
    """
    대화 메시지를 LLM에 보내고 답변 텍스트를 돌려준다.
    timeout은 연결부터 응답 본문 수신까지 전체에 걸리는 제한 시간이다.
    시간을 넘기면 워커의 요청은 버리고 LLMTimeout을 던진다.

    :param messages: [{role, content}] 대화 히스토리
    :type messages: List[Dict[str, Any]]
    :param max_tokens: 최대 생성 토큰 수
    :type max_tokens: int
    :param timeout: 전체 요청 제한 시간(초), None이면 무제한
    :type timeout: Optional[float]
    :raises LLMNotConfigured: API 키 미설정
    :raises LLMTimeout: 제한 시간 초과
    :raises LLMError: 그 외 호출 실패
    :return: 모델 응답 텍스트
    :rtype: str
    """

    if not config.OPENAI_API_KEY:
        raise LLMNotConfigured("OPENAI_API_KEY not set")

    last_user = next((m for m in reversed(messages) if m.get("role") == "user"), {})
    logger.debug("[LLM] req: model=%s max_tokens=%d user='%s...'", config.OPENAI_MODEL, max_tokens,
                 (last_user.get("content") or "")[:80].replace("\n", " "))

    future = _EXECUTOR.submit(_post_completion, messages, max_tokens, timeout)
    try:
        r = future.result(timeout=timeout)
    except FuturesTimeout as e:
        future.cancel()
        logger.error("[LLM] request exceeded total deadline of %ss", timeout)
        raise LLMTimeout("AI request timeout") from e
    except requests.Timeout as e:
        logger.error("[LLM] request timeout after %ss", timeout)
        raise LLMTimeout("AI request timeout") from e
    except requests.RequestException as e:
        logger.error("[LLM] request failed: %s", e)
        raise LLMError("LLM call failed") from e

    if not r.ok:
        logger.error("[LLM] API error: %s %s", r.status_code, r.text)
        raise LLMError("LLM call failed")

    try:
        content = r.json()["choices"][0]["message"].get("content") or ""
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise LLMError("LLM response malformed") from e

    logger.debug("[LLM] res: content='%s...'", content[:80].replace("\n", " "))
    return content
