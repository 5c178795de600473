"""
장부 도메인 모델

Operation(확정 연산), OperationDraft(입력 초안), OperationChange(변경 이력),
Currency(통화 레지스트리), LedgerResult(엔진 결과)
"""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.ledger.types import ChangeAction, LedgerErrorKind
from core.types import OperationType


def decimal_to_str(value: Decimal | None) -> str | None:
    """Decimal을 JSON/DB 저장용 문자열로 변환 (None 유지)"""
    if value is None:
        return None
    return str(value)


@dataclass
class Currency:
    """통화

    code는 항상 대문자로 정규화되어 저장된다.
    """

    code: str
    name: str
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "name": self.name, "is_active": self.is_active}


@dataclass
class OperationDraft:
    """연산 초안

    사용자 입력 그대로의 미검증 데이터.
    Exchange의 rate는 표시 방식 변환을 거친 정방향(canonical) 환율이어야 한다.
    Income/Expense의 rate가 None이면 캐시된 USD 환율을 사용한다.
    """

    date: datetime
    type: OperationType
    source_currency: str
    source_amount: Decimal
    target_currency: str | None = None
    rate: Decimal | None = None
    commission: Decimal | None = None
    expense_category: str | None = None
    expense_comment: str | None = None


@dataclass
class Operation:
    """확정된 장부 연산

    커밋 후에는 불변. 수정은 삭제 + 복원으로만 가능.
    Exchange의 rate는 수수료 차감 후 실현 환율 (target_amount / source_amount).
    """

    id: int
    date: datetime
    type: OperationType
    source_currency: str
    source_amount: Decimal
    target_currency: str
    target_amount: Decimal
    rate: Decimal
    commission: Decimal | None
    usd_equivalent: Decimal
    expense_category: str | None = None
    expense_comment: str | None = None

    def with_id(self, operation_id: int) -> "Operation":
        """id만 바꾼 사본 반환"""
        return replace(self, id=operation_id)

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (직렬화용, Decimal은 문자열)"""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "type": self.type.value,
            "source_currency": self.source_currency,
            "source_amount": decimal_to_str(self.source_amount),
            "target_currency": self.target_currency,
            "target_amount": decimal_to_str(self.target_amount),
            "rate": decimal_to_str(self.rate),
            "commission": decimal_to_str(self.commission),
            "usd_equivalent": decimal_to_str(self.usd_equivalent),
            "expense_category": self.expense_category,
            "expense_comment": self.expense_comment,
        }


@dataclass
class OperationChange:
    """변경 이력 항목 (append-only)

    details에는 해당 시점 연산의 전체 스냅샷(JSON)이 저장된다.
    """

    id: int
    operation_id: int | None
    action: ChangeAction
    timestamp: datetime
    details: str
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "operation_id": self.operation_id,
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
            "reason": self.reason,
        }


@dataclass
class LedgerResult:
    """엔진 공개 연산 결과

    예외 대신 명시적 결과를 반환하여 호출자가 오류 종류별로 처리하도록 한다.
    """

    ok: bool
    operation: Operation | None = None
    error: LedgerErrorKind | None = None
    reason: str | None = None

    @classmethod
    def success(cls, operation: Operation | None = None) -> "LedgerResult":
        return cls(ok=True, operation=operation)

    @classmethod
    def failure(cls, error: LedgerErrorKind, reason: str) -> "LedgerResult":
        return cls(ok=False, error=error, reason=reason)
