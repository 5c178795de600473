"""
History 라우트

변경 이력 조회 및 삭제 이력 복원 API
"""

from fastapi import APIRouter, Depends, Path, Query

from core.ledger.engine import LedgerEngine
from web.dependencies import get_engine
from web.errors import raise_for_result
from web.models.responses import ChangeResponse, OperationResponse

router = APIRouter(prefix="/api", tags=["History"])


@router.get("/history", response_model=list[ChangeResponse])
async def list_changes(
    operation_id: int | None = Query(default=None, description="특정 연산의 이력만 조회"),
    engine: LedgerEngine = Depends(get_engine),
) -> list[ChangeResponse]:
    """변경 이력 (최신순)"""
    changes = await engine.get_operation_changes(operation_id)
    return [ChangeResponse.from_change(change) for change in changes]


@router.post("/history/{change_id}/restore", response_model=OperationResponse)
async def restore_change(
    change_id: int = Path(..., description="Delete 이력 ID"),
    engine: LedgerEngine = Depends(get_engine),
) -> OperationResponse:
    """삭제된 연산 복원 (새 ID로 다시 생성)

    Delete가 아닌 이력이거나 스냅샷이 손상된 경우 422.
    """
    result = await engine.restore_operation(change_id)
    raise_for_result(result)

    assert result.operation is not None
    return OperationResponse.from_operation(result.operation)
