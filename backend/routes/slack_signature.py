# routes/slack_signature.py
# Slack 웹훅 서명 검증 (HMAC-SHA256, v0 방식)

import hashlib
import hmac
import logging
import time
from typing import Optional, Union

from routes.planner_prompts import SIGNATURE_MAX_AGE

logger = logging.getLogger(__name__)


def compute_signature(secret: str, timestamp: str, raw_body: Union[bytes, str]) -> str:
    """
    'v0:{timestamp}:{body}'에 대한 HMAC-SHA256 서명을 'v0=<hex>' 형식으로 만든다.

    :param secret: Slack 서명 시크릿
    :type secret: str
    :param timestamp: X-Slack-Request-Timestamp 헤더 값
    :type timestamp: str
    :param raw_body: 파싱 전 원본 요청 바디
    :type raw_body: Union[bytes, str]
    :return: 'v0='로 시작하는 서명 문자열
    :rtype: str
    """

    body = raw_body if isinstance(raw_body, bytes) else raw_body.encode("utf-8")
    base = b"v0:" + timestamp.encode("utf-8") + b":" + body
    digest = hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return f"v0={digest}"


def verify_slack_signature(
    secret: str,
    timestamp: Optional[str],
    raw_body: Union[bytes, str],
    signature: Optional[str],
    now: Optional[float] = None,
) -> bool:
    """
    웹훅 요청이 Slack에서 온 것인지 검증한다.

    - 타임스탬프가 현재와 300초 넘게 차이나면 실패(재전송 공격 방지)
    - 반드시 JSON 파싱 전 '원본 바디'로 계산해야 함 (재직렬화하면 바이트가 달라짐)
    - 실패는 예외가 아니라 False

    :param secret: Slack 서명 시크릿
    :type secret: str
    :param timestamp: X-Slack-Request-Timestamp 헤더 값
    :type timestamp: Optional[str]
    :param raw_body: 원본 요청 바디
    :type raw_body: Union[bytes, str]
    :param signature: X-Slack-Signature 헤더 값
    :type signature: Optional[str]
    :param now: 기준 시각(테스트용), 없으면 현재 시각
    :type now: Optional[float]
    :return: 검증 성공 여부
    :rtype: bool
    """

    if not timestamp or not signature:
        logger.warning("[SLACK] signature headers missing")
        return False
    try:
        req_ts = int(timestamp)
    except ValueError:
        logger.warning("[SLACK] invalid timestamp header: %s", timestamp)
        return False

    current = int(now if now is not None else time.time())
    if abs(current - req_ts) > SIGNATURE_MAX_AGE:
        logger.warning("[SLACK] stale request timestamp (age=%ss)", current - req_ts)
        return False

    expected = compute_signature(secret, timestamp, raw_body)
    return hmac.compare_digest(expected, signature)
