"""
장부 예외

엔진 내부에서 발생하고, 공개 연산 경계에서 LedgerResult로 변환된다.
"""

from core.ledger.types import LedgerErrorKind


class LedgerError(Exception):
    """장부 예외 기본 클래스"""

    kind: LedgerErrorKind = LedgerErrorKind.VALIDATION


class ValidationError(LedgerError):
    """입력 검증 실패 (통화 누락, 금액/환율 비양수 등)"""

    kind = LedgerErrorKind.VALIDATION


class InsufficientFundsError(LedgerError):
    """Expense/Exchange가 잔액을 -ε 아래로 내리는 경우"""

    kind = LedgerErrorKind.INSUFFICIENT_FUNDS

    def __init__(self, currency: str, balance: object, amount: object):
        self.currency = currency
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"{currency} 잔액 부족: 잔액 {balance}, 요청 금액 {amount}"
        )


class RestoreFailedError(LedgerError):
    """복원 불가 (이력 없음, Delete 액션 아님, 스냅샷 해석 실패)"""

    kind = LedgerErrorKind.RESTORE_FAILED


class PersistenceError(LedgerError):
    """트랜잭션 내부 DB 오류 (전체 롤백됨)"""

    kind = LedgerErrorKind.PERSISTENCE
