"""
Rates 라우트

USD 환율 캐시, 통화쌍 최근 환율, 통화쌍 표시 방식 API
"""

from fastapi import APIRouter, Depends, Query

from core.fx.presentation import FxRatePresentationService
from core.ledger.engine import LedgerEngine
from core.ledger.errors import LedgerError
from core.types import normalize_currency_code
from web.dependencies import get_engine, get_fx_service
from web.errors import http_error_for
from web.models.requests import DisplayModeUpdateRequest
from web.models.responses import DisplayModeResponse, PairRateResponse, UsdRateResponse

router = APIRouter(prefix="/api/rates", tags=["Rates"])


@router.get("/usd", response_model=list[UsdRateResponse])
async def get_usd_rates(
    engine: LedgerEngine = Depends(get_engine),
) -> list[UsdRateResponse]:
    """통화별 USD 환율 캐시"""
    rates = await engine.get_usd_rates()
    return [
        UsdRateResponse(currency=currency, rate=str(rate))
        for currency, rate in rates.items()
    ]


@router.get("/pair", response_model=PairRateResponse)
async def get_pair_rate(
    from_currency: str = Query(..., alias="from", description="원천 통화"),
    to_currency: str = Query(..., alias="to", description="대상 통화"),
    engine: LedgerEngine = Depends(get_engine),
    fx_service: FxRatePresentationService = Depends(get_fx_service),
) -> PairRateResponse:
    """통화쌍의 마지막 환전 환율 (환전 입력 기본값용)"""
    rate = await engine.get_last_pair_rate(from_currency, to_currency)
    mode = await fx_service.get_display_mode(from_currency, to_currency)

    display_rate = None
    if rate is not None:
        display_rate = await fx_service.to_display_rate(rate, from_currency, to_currency)

    return PairRateResponse(
        from_currency=normalize_currency_code(from_currency),
        to_currency=normalize_currency_code(to_currency),
        rate=str(rate) if rate is not None else None,
        display_rate=str(display_rate) if display_rate is not None else None,
        display_mode=mode.value,
    )


@router.get("/display-mode", response_model=DisplayModeResponse)
async def get_display_mode(
    from_currency: str = Query(..., alias="from", description="원천 통화"),
    to_currency: str = Query(..., alias="to", description="대상 통화"),
    fx_service: FxRatePresentationService = Depends(get_fx_service),
) -> DisplayModeResponse:
    """통화쌍 표시 방식 조회 (미설정이면 Direct)"""
    mode = await fx_service.get_display_mode(from_currency, to_currency)
    return DisplayModeResponse(
        from_currency=normalize_currency_code(from_currency),
        to_currency=normalize_currency_code(to_currency),
        mode=mode.value,
    )


@router.put("/display-mode", response_model=DisplayModeResponse)
async def set_display_mode(
    request: DisplayModeUpdateRequest,
    fx_service: FxRatePresentationService = Depends(get_fx_service),
) -> DisplayModeResponse:
    """통화쌍 표시 방식 변경"""
    try:
        await fx_service.set_display_mode(request.from_currency, request.to_currency, request.mode)
    except LedgerError as e:
        raise http_error_for(e) from e

    return DisplayModeResponse(
        from_currency=normalize_currency_code(request.from_currency),
        to_currency=normalize_currency_code(request.to_currency),
        mode=request.mode.value,
    )
