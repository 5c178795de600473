"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
요청마다 DB 연결을 열고, 그 위에 LedgerEngine/서비스를 생성한다.
"""

from typing import AsyncGenerator

from fastapi import Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, get_settings
from core.fx.presentation import FxRatePresentationService
from core.ledger.engine import LedgerEngine
from core.spreadsheet.service import SpreadsheetService


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환

    장부 엔진이 유일한 쓰기 주체이므로 조회/변경 모두 같은 방식으로 연결한다.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path) as db:
        yield db


def get_engine(
    db: SQLiteAdapter = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> LedgerEngine:
    """요청 단위 LedgerEngine"""
    return LedgerEngine(db, rebuild_rates_on_delete=settings.rebuild_rates_on_delete)


def get_fx_service(db: SQLiteAdapter = Depends(get_db)) -> FxRatePresentationService:
    """요청 단위 환율 표시 서비스"""
    return FxRatePresentationService(db)


def get_spreadsheet_service() -> SpreadsheetService:
    return SpreadsheetService()
