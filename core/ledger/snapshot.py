"""
연산 스냅샷 코덱

변경 이력(operation_change.details)에 저장되는 JSON 스냅샷 인코딩/디코딩.
복원(Restore)의 유일한 근거이므로 모든 필드를 왕복 보존해야 한다.

형식 (version 1):
```json
{"kind": "operation", "version": 1, "id": 7, "date": "2026-01-05T00:00:00",
 "type": "Exchange", "source_currency": "EUR", "source_amount": "100", ...}
```

스키마 확장 규칙: 필드는 추가만 한다. 디코딩 시 없는 선택 필드는 None.
태그가 없는 PascalCase 스냅샷(이전 버전 기록)도 읽을 수 있다.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from core.ledger.models import Operation
from core.types import OperationType, to_naive_utc

logger = logging.getLogger(__name__)

SNAPSHOT_KIND = "operation"
SNAPSHOT_VERSION = 1

# 이전 버전(태그 없는 PascalCase) 필드명 → 현재 필드명
_LEGACY_FIELDS: dict[str, str] = {
    "Id": "id",
    "Date": "date",
    "Type": "type",
    "SourceCurrency": "source_currency",
    "SourceAmount": "source_amount",
    "TargetCurrency": "target_currency",
    "TargetAmount": "target_amount",
    "Rate": "rate",
    "Commission": "commission",
    "UsdEquivalent": "usd_equivalent",
    "ExpenseCategory": "expense_category",
    "ExpenseComment": "expense_comment",
}


def encode(operation: Operation) -> str:
    """연산을 스냅샷 JSON 문자열로 변환"""
    data: dict[str, Any] = {"kind": SNAPSHOT_KIND, "version": SNAPSHOT_VERSION}
    data.update(operation.to_dict())
    return json.dumps(data, ensure_ascii=False)


def decode(text: str | None) -> Operation | None:
    """스냅샷 JSON 문자열을 연산으로 복원

    Args:
        text: encode() 결과 또는 이전 버전 스냅샷

    Returns:
        Operation 또는 None (해석 불가 시, 예외를 던지지 않음)
    """
    if not text:
        return None

    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        logger.warning(f"스냅샷 JSON 파싱 실패: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning("스냅샷이 JSON 객체가 아님")
        return None

    if "kind" not in data:
        data = _upgrade_legacy(data)
    elif data.get("kind") != SNAPSHOT_KIND:
        logger.warning(f"알 수 없는 스냅샷 종류: {data.get('kind')}")
        return None

    try:
        return _from_dict(data)
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        logger.warning(f"스냅샷 필드 해석 실패: {e}")
        return None


def _upgrade_legacy(data: dict[str, Any]) -> dict[str, Any]:
    """태그 없는 PascalCase 스냅샷을 현재 필드명으로 변환"""
    return {_LEGACY_FIELDS.get(key, key): value for key, value in data.items()}


def _decimal(value: Any) -> Decimal:
    # JSON 숫자(float)는 str을 거쳐 변환해야 이진 오차가 들어오지 않음
    if isinstance(value, bool) or value is None:
        raise ValueError(f"숫자가 아님: {value!r}")
    return Decimal(str(value))


def _optional_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    return _decimal(value)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _from_dict(data: dict[str, Any]) -> Operation:
    source_currency = str(data["source_currency"]).strip().upper()
    target_currency = str(data.get("target_currency") or source_currency).strip().upper()
    source_amount = _decimal(data["source_amount"])
    target_amount = data.get("target_amount")

    return Operation(
        id=int(data.get("id") or 0),
        date=to_naive_utc(datetime.fromisoformat(str(data["date"]))),
        type=OperationType(data["type"]),
        source_currency=source_currency,
        source_amount=source_amount,
        target_currency=target_currency,
        target_amount=source_amount if target_amount is None else _decimal(target_amount),
        rate=_decimal(data.get("rate", 0)),
        commission=_optional_decimal(data.get("commission")),
        usd_equivalent=_decimal(data.get("usd_equivalent", 0)),
        expense_category=_optional_text(data.get("expense_category")),
        expense_comment=_optional_text(data.get("expense_comment")),
    )
