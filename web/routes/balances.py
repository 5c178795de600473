"""
Balances 라우트

통화별 잔액 조회 API
"""

from fastapi import APIRouter, Depends

from core.ledger.engine import LedgerEngine
from web.dependencies import get_engine
from web.models.responses import BalanceResponse

router = APIRouter(prefix="/api", tags=["Balances"])


@router.get("/balances", response_model=list[BalanceResponse])
async def get_balances(
    engine: LedgerEngine = Depends(get_engine),
) -> list[BalanceResponse]:
    """통화별 잔액 (통화 코드순)"""
    balances = await engine.get_balances()
    return [
        BalanceResponse(currency=currency, amount=str(amount))
        for currency, amount in balances.items()
    ]
