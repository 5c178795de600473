"""
장부 오류 → HTTP 응답 변환

LedgerResult.error 종류별 상태 코드:
- VALIDATION → 400
- INSUFFICIENT_FUNDS → 409
- RESTORE_FAILED → 422
- PERSISTENCE → 500
"""

from fastapi import HTTPException

from core.ledger.errors import LedgerError
from core.ledger.models import LedgerResult
from core.ledger.types import LedgerErrorKind

STATUS_BY_KIND: dict[LedgerErrorKind, int] = {
    LedgerErrorKind.VALIDATION: 400,
    LedgerErrorKind.INSUFFICIENT_FUNDS: 409,
    LedgerErrorKind.RESTORE_FAILED: 422,
    LedgerErrorKind.PERSISTENCE: 500,
}


def ledger_http_error(kind: LedgerErrorKind, reason: str | None) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_KIND.get(kind, 500),
        detail={"error": kind.value, "reason": reason or ""},
    )


def raise_for_result(result: LedgerResult) -> None:
    """실패 결과면 HTTPException 발생"""
    if result.ok:
        return
    assert result.error is not None
    raise ledger_http_error(result.error, result.reason)


def http_error_for(error: LedgerError) -> HTTPException:
    """엔진 밖(레지스트리, 표시 방식)에서 발생한 LedgerError 변환"""
    return ledger_http_error(error.kind, str(error))
