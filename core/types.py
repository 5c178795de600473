"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from datetime import datetime, timezone
from enum import Enum


class OperationType(str, Enum):
    """장부 연산 유형"""

    INCOME = "Income"  # 입금 (잔액 증가)
    EXPENSE = "Expense"  # 지출 (잔액 감소)
    EXCHANGE = "Exchange"  # 환전 (원천 통화 감소, 대상 통화 증가)


class FxRateDisplayMode(str, Enum):
    """통화쌍 환율 표시 방식

    DIRECT: 1 FROM = ? TO
    INVERTED: 1 TO = ? FROM
    """

    DIRECT = "Direct"
    INVERTED = "Inverted"


def normalize_currency_code(code: str | None) -> str:
    """통화 코드 정규화 (앞뒤 공백 제거 + 대문자)

    Returns:
        정규화된 코드 (입력이 None이면 빈 문자열)
    """
    if code is None:
        return ""
    return code.strip().upper()


def to_naive_utc(value: datetime) -> datetime:
    """연산 일시 정규화

    시간대가 있는 값은 UTC로 바꾼 뒤 tzinfo를 떼어낸다.
    장부의 모든 일시는 naive로 저장/비교된다.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
