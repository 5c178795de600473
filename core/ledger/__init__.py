"""
다중 통화 현금 장부

연산 로그(Income / Expense / Exchange)와 그 Projection(잔액, USD 환율 캐시,
통화쌍 최근 환율), append-only 변경 이력을 관리.

사용 예시:
```python
from core.ledger import LedgerEngine, OperationDraft, init_ledger_schema

await init_ledger_schema(db, ["USD", "EUR", "RUB"])
engine = LedgerEngine(db)

# 연산 생성
result = await engine.create_operation(draft)
if not result.ok:
    ...  # result.error: LedgerErrorKind

# 삭제 후 복원
await engine.delete_operation(result.operation.id, reason="오입력")
changes = await engine.get_operation_changes(result.operation.id)
await engine.restore_operation(changes[0].id)

# 잔액 조회
balances = await engine.get_balances()
```
"""

from core.ledger.engine import LedgerEngine
from core.ledger.errors import (
    InsufficientFundsError,
    LedgerError,
    PersistenceError,
    RestoreFailedError,
    ValidationError,
)
from core.ledger.models import (
    Currency,
    LedgerResult,
    Operation,
    OperationChange,
    OperationDraft,
)
from core.ledger.registry import CurrencyRegistry
from core.ledger.schema import init_ledger_schema
from core.ledger.store import LedgerStore
from core.ledger.types import LEDGER_TABLES, ChangeAction, LedgerErrorKind

__all__ = [
    # 핵심 클래스
    "LedgerEngine",
    "LedgerStore",
    "CurrencyRegistry",
    "init_ledger_schema",
    # 모델
    "Currency",
    "Operation",
    "OperationDraft",
    "OperationChange",
    "LedgerResult",
    # Enum
    "ChangeAction",
    "LedgerErrorKind",
    # 예외
    "LedgerError",
    "ValidationError",
    "InsufficientFundsError",
    "RestoreFailedError",
    "PersistenceError",
    # 상수
    "LEDGER_TABLES",
]
