"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
금액/환율은 Decimal로 받는다 (JSON 문자열 "1.08" 권장).
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from core.ledger.models import OperationDraft
from core.types import FxRateDisplayMode, OperationType


class OperationCreateRequest(BaseModel):
    """연산 생성 요청

    rate_is_display가 true이면 Exchange의 rate를 통화쌍 표시 방식 기준 값으로 보고
    정방향 환율로 변환한 뒤 엔진에 넘긴다.
    """

    date: datetime = Field(..., description="연산 일시")
    type: OperationType = Field(..., description="연산 유형 (Income/Expense/Exchange)")
    source_currency: str = Field(..., description="원천 통화")
    source_amount: Decimal = Field(..., description="원천 금액")
    target_currency: str | None = Field(default=None, description="환전 대상 통화 (Exchange만)")
    rate: Decimal | None = Field(default=None, description="환율 (Income/Expense는 USD 환율, 생략 시 캐시 값)")
    rate_is_display: bool = Field(default=False, description="rate가 표시 방식 기준 값인지 여부")
    commission: Decimal | None = Field(default=None, description="환전 수수료 (대상 통화)")
    expense_category: str | None = Field(default=None, description="지출 분류 (Expense 필수)")
    expense_comment: str | None = Field(default=None, description="지출 메모")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "date": "2026-01-05T00:00:00",
                    "type": "Exchange",
                    "source_currency": "EUR",
                    "source_amount": "100",
                    "target_currency": "USD",
                    "rate": "1.1",
                    "commission": "2",
                },
                {
                    "date": "2026-01-06T00:00:00",
                    "type": "Expense",
                    "source_currency": "USD",
                    "source_amount": "25",
                    "expense_category": "Food",
                },
            ]
        }
    }

    def to_draft(self, rate: Decimal | None = None) -> OperationDraft:
        """엔진 입력 초안으로 변환 (rate를 넘기면 그 값을 사용)"""
        return OperationDraft(
            date=self.date,
            type=self.type,
            source_currency=self.source_currency,
            source_amount=self.source_amount,
            target_currency=self.target_currency,
            rate=rate if rate is not None else self.rate,
            commission=self.commission,
            expense_category=self.expense_category,
            expense_comment=self.expense_comment,
        )


class CurrencyCreateRequest(BaseModel):
    """통화 추가 요청"""

    code: str = Field(..., description="통화 코드 (대소문자 무관)")
    name: str | None = Field(default=None, description="표시 이름 (생략 시 코드)")
    is_active: bool = Field(default=True, description="활성 여부")


class CurrencyUpdateRequest(BaseModel):
    """통화 변경 요청 (생략한 필드는 유지)"""

    name: str | None = Field(default=None, description="표시 이름")
    is_active: bool | None = Field(default=None, description="활성 여부")


class DisplayModeUpdateRequest(BaseModel):
    """통화쌍 환율 표시 방식 변경 요청"""

    from_currency: str = Field(..., description="원천 통화")
    to_currency: str = Field(..., description="대상 통화")
    mode: FxRateDisplayMode = Field(..., description="Direct 또는 Inverted")
