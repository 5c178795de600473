"""
Currencies 라우트

통화 레지스트리 조회/추가/변경 API
"""

from fastapi import APIRouter, Depends, Path, Query

from core.ledger.engine import LedgerEngine
from core.ledger.errors import LedgerError
from web.dependencies import get_engine
from web.errors import http_error_for
from web.models.requests import CurrencyCreateRequest, CurrencyUpdateRequest
from web.models.responses import CurrencyResponse

router = APIRouter(prefix="/api", tags=["Currencies"])


@router.get("/currencies", response_model=list[CurrencyResponse])
async def list_currencies(
    active_only: bool = Query(default=False, description="활성 통화만"),
    engine: LedgerEngine = Depends(get_engine),
) -> list[CurrencyResponse]:
    """통화 목록"""
    currencies = await engine.list_currencies(active_only)
    return [CurrencyResponse.from_currency(c) for c in currencies]


@router.post("/currencies", response_model=CurrencyResponse, status_code=201)
async def add_currency(
    request: CurrencyCreateRequest,
    engine: LedgerEngine = Depends(get_engine),
) -> CurrencyResponse:
    """통화 추가 (이미 있으면 400)"""
    try:
        async with engine.db.transaction():
            currency = await engine.registry.add_currency(
                request.code, request.name, request.is_active
            )
    except LedgerError as e:
        raise http_error_for(e) from e

    return CurrencyResponse.from_currency(currency)


@router.put("/currencies/{code}", response_model=CurrencyResponse)
async def update_currency(
    request: CurrencyUpdateRequest,
    code: str = Path(..., description="통화 코드"),
    engine: LedgerEngine = Depends(get_engine),
) -> CurrencyResponse:
    """통화 이름/활성 여부 변경 (없으면 400)"""
    try:
        async with engine.db.transaction():
            currency = await engine.registry.update_currency(
                code, request.name, request.is_active
            )
    except LedgerError as e:
        raise http_error_for(e) from e

    return CurrencyResponse.from_currency(currency)
