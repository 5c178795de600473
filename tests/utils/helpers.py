"""
테스트 헬퍼 함수
"""

from datetime import datetime
from decimal import Decimal

from core.ledger.models import OperationDraft
from core.types import OperationType


def make_draft(
    op_type: OperationType,
    currency: str,
    amount: str,
    *,
    target: str | None = None,
    rate: str | None = None,
    commission: str | None = None,
    category: str | None = None,
    day: int = 1,
) -> OperationDraft:
    """테스트용 OperationDraft 생성

    Expense는 분류가 필수이므로 지정하지 않으면 "General"을 사용한다.
    """
    if op_type == OperationType.EXPENSE and category is None:
        category = "General"

    return OperationDraft(
        date=datetime(2026, 1, day),
        type=op_type,
        source_currency=currency,
        source_amount=Decimal(amount),
        target_currency=target,
        rate=Decimal(rate) if rate is not None else None,
        commission=Decimal(commission) if commission is not None else None,
        expense_category=category,
    )
