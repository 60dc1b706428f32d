# routes/planner_time.py
# 시간 / 날짜 포맷

from datetime import datetime, date, timezone
from typing import Optional

LONG_DATE_FMT = "%A, %B %d, %Y"  # Saturday, March 15, 2025


def _now_iso() -> str:
    """
    현재 시각을 UTC ISO 8601 문자열로 반환한다. (createdAt/updatedAt 용)

    :return: 'Z'로 끝나는 ISO 문자열(밀리초)
    :rtype: str
    """

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_plan_date(s: Optional[str]) -> Optional[date]:
    """
    플랜의 date 값(YYYY-MM-DD 또는 ISO 유사 형식)을 date로 파싱한다.

    :param s: 날짜 문자열
    :type s: Optional[str]
    :return: date 또는 None(파싱 실패)
    :rtype: Optional[date]
    """

    if not s or not isinstance(s, str):
        return None
    try:
        return date.fromisoformat(s.strip()[:10])
    except ValueError:
        return None


def _long_date(s: Optional[str]) -> str:
    """
    플랜 날짜를 'Saturday, March 15, 2025' 같은 긴 형식으로 바꾼다.
    파싱이 안 되면 원문을 그대로 돌려줌.
    """

    d = _parse_plan_date(s)
    if not d:
        return str(s or "TBD")
    # %d는 0을 채우므로 일(day)만 따로 넣음
    return d.strftime("%A, %B {day}, %Y").replace("{day}", str(d.day))


def _long_date_to_iso(s: str) -> str:
    """
    _long_date의 역변환. 긴 형식이 아니면 원문 유지(손실 가능).
    """

    try:
        return datetime.strptime(s.strip(), LONG_DATE_FMT).date().isoformat()
    except ValueError:
        return s.strip()


def _footer_date() -> str:
    # 푸터에는 플랜 생성 시각이 아니라 '렌더링 시각'을 찍는다
    n = datetime.now()
    return f"{n.month}/{n.day}/{n.year}"


def _footer_datetime() -> str:
    n = datetime.now()
    return f"{n.month}/{n.day}/{n.year}, {n.strftime('%I:%M:%S %p').lstrip('0')}"
