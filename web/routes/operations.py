"""
Operations 라우트

연산 조회/생성/삭제 API
"""

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from core.fx.presentation import FxRatePresentationService
from core.ledger.engine import LedgerEngine
from core.ledger.errors import LedgerError
from core.types import OperationType
from web.dependencies import get_engine, get_fx_service
from web.errors import http_error_for, raise_for_result
from web.models.requests import OperationCreateRequest
from web.models.responses import DeleteResponse, OperationResponse

router = APIRouter(prefix="/api", tags=["Operations"])


@router.get("/operations", response_model=list[OperationResponse])
async def list_operations(
    engine: LedgerEngine = Depends(get_engine),
) -> list[OperationResponse]:
    """연산 목록 (최신순)"""
    operations = await engine.get_operations()
    return [OperationResponse.from_operation(op) for op in operations]


@router.get("/operations/{operation_id}", response_model=OperationResponse)
async def get_operation(
    operation_id: int = Path(..., description="연산 ID"),
    engine: LedgerEngine = Depends(get_engine),
) -> OperationResponse:
    """연산 단건 조회"""
    operation = await engine.get_operation(operation_id)
    if operation is None:
        raise HTTPException(
            status_code=404,
            detail=f"Operation not found: {operation_id}"
        )
    return OperationResponse.from_operation(operation)


@router.post("/operations", response_model=OperationResponse, status_code=201)
async def create_operation(
    request: OperationCreateRequest,
    engine: LedgerEngine = Depends(get_engine),
    fx_service: FxRatePresentationService = Depends(get_fx_service),
) -> OperationResponse:
    """연산 생성

    잔액 부족은 409, 입력 오류는 400.
    """
    rate = request.rate
    if (
        request.rate_is_display
        and request.type == OperationType.EXCHANGE
        and request.rate is not None
    ):
        try:
            rate = await fx_service.to_internal_rate(
                request.rate,
                request.source_currency,
                request.target_currency or "",
            )
        except LedgerError as e:
            raise http_error_for(e) from e

    result = await engine.create_operation(request.to_draft(rate))
    raise_for_result(result)

    assert result.operation is not None
    return OperationResponse.from_operation(result.operation)


@router.delete("/operations/{operation_id}", response_model=DeleteResponse)
async def delete_operation(
    operation_id: int = Path(..., description="연산 ID"),
    reason: str | None = Query(default=None, description="삭제 사유"),
    engine: LedgerEngine = Depends(get_engine),
) -> DeleteResponse:
    """연산 삭제 (변경 이력에 스냅샷이 남아 복원 가능)"""
    result = await engine.delete_operation(operation_id, reason)
    raise_for_result(result)

    if result.operation is None:
        return DeleteResponse(deleted=False)
    return DeleteResponse(
        deleted=True,
        operation=OperationResponse.from_operation(result.operation),
    )
