"""시간 유틸리티

모든 만료 시간은 timezone-aware UTC datetime으로 다룬다.
"""

import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

Clock = Callable[[], datetime]

# Xbox Live는 소수점 이하 7자리까지 내려준다 (예: 2024-01-01T00:00:00.1234567Z)
_FRACTION_RE = re.compile(r"\.(\d+)")


def utc_now() -> datetime:
    """현재 UTC 시각"""
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """ISO 8601 문자열을 UTC datetime으로 변환.

    'Z' 접미사와 6자리를 넘는 소수점 초를 허용한다.
    timezone 정보가 없으면 UTC로 간주한다.

    Raises:
        ValueError: 파싱 불가능한 문자열
    """
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """UTC ISO 8601 문자열 (저장용)"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def expires_after(now: datetime, seconds: int | float) -> datetime:
    """now + seconds"""
    return now + timedelta(seconds=seconds)
