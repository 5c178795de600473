"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
Decimal은 정밀도 보존을 위해 문자열로 내보낸다.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from core.ledger.models import Currency, Operation, OperationChange


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    version: str = Field(..., description="애플리케이션 버전")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class OperationResponse(BaseModel):
    """연산 응답"""

    id: int = Field(..., description="연산 ID")
    date: datetime = Field(..., description="연산 일시")
    type: str = Field(..., description="연산 유형")
    source_currency: str = Field(..., description="원천 통화")
    source_amount: str = Field(..., description="원천 금액")
    target_currency: str = Field(..., description="대상 통화")
    target_amount: str = Field(..., description="대상 금액 (수수료 차감 후)")
    rate: str = Field(..., description="실현 환율")
    commission: str | None = Field(default=None, description="수수료")
    usd_equivalent: str = Field(..., description="USD 환산액")
    expense_category: str | None = Field(default=None, description="지출 분류")
    expense_comment: str | None = Field(default=None, description="지출 메모")

    @classmethod
    def from_operation(cls, op: Operation) -> "OperationResponse":
        return cls(
            id=op.id,
            date=op.date,
            type=op.type.value,
            source_currency=op.source_currency,
            source_amount=str(op.source_amount),
            target_currency=op.target_currency,
            target_amount=str(op.target_amount),
            rate=str(op.rate),
            commission=str(op.commission) if op.commission is not None else None,
            usd_equivalent=str(op.usd_equivalent),
            expense_category=op.expense_category,
            expense_comment=op.expense_comment,
        )


class DeleteResponse(BaseModel):
    """연산 삭제 응답 (없는 id는 deleted=false)"""

    deleted: bool = Field(..., description="실제로 삭제되었는지 여부")
    operation: OperationResponse | None = Field(default=None, description="삭제된 연산")


class BalanceResponse(BaseModel):
    """통화별 잔액 응답"""

    currency: str = Field(..., description="통화")
    amount: str = Field(..., description="잔액")


class UsdRateResponse(BaseModel):
    """통화별 USD 환율 캐시 응답"""

    currency: str = Field(..., description="통화")
    rate: str = Field(..., description="1 단위당 USD (0이면 미확인)")


class PairRateResponse(BaseModel):
    """통화쌍 최근 환전 환율 응답"""

    from_currency: str = Field(..., description="원천 통화")
    to_currency: str = Field(..., description="대상 통화")
    rate: str | None = Field(default=None, description="정방향 환율 (기록 없으면 null)")
    display_rate: str | None = Field(default=None, description="표시 방식 적용 환율")
    display_mode: str = Field(..., description="Direct 또는 Inverted")


class DisplayModeResponse(BaseModel):
    """통화쌍 환율 표시 방식 응답"""

    from_currency: str = Field(..., description="원천 통화")
    to_currency: str = Field(..., description="대상 통화")
    mode: str = Field(..., description="Direct 또는 Inverted")


class ChangeResponse(BaseModel):
    """변경 이력 응답"""

    id: int = Field(..., description="이력 ID")
    operation_id: int | None = Field(default=None, description="대상 연산 ID")
    action: str = Field(..., description="Create/Delete/Restore")
    timestamp: datetime = Field(..., description="기록 시각 (UTC)")
    details: str = Field(..., description="연산 스냅샷 (JSON)")
    reason: str | None = Field(default=None, description="사유")

    @classmethod
    def from_change(cls, change: OperationChange) -> "ChangeResponse":
        return cls(
            id=change.id,
            operation_id=change.operation_id,
            action=change.action.value,
            timestamp=change.timestamp,
            details=change.details,
            reason=change.reason,
        )


class CurrencyResponse(BaseModel):
    """통화 응답"""

    code: str = Field(..., description="통화 코드")
    name: str = Field(..., description="표시 이름")
    is_active: bool = Field(..., description="활성 여부")

    @classmethod
    def from_currency(cls, currency: Currency) -> "CurrencyResponse":
        return cls(code=currency.code, name=currency.name, is_active=currency.is_active)


class ImportResponse(BaseModel):
    """스프레드시트 가져오기 응답"""

    imported: int = Field(..., description="가져온 연산 수")
