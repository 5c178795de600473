"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.ledger.schema import init_ledger_schema
from core.logging import setup_logging
from web.routes import (
    balances,
    currencies,
    health,
    history,
    operations,
    rates,
    spreadsheet,
)
from web.routes.health import APP_VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    settings = get_settings()

    # 로깅 설정 (콘솔 + 파일)
    setup_logging("web", console_level=settings.log_level, log_dir=settings.log_dir)

    # 시작 시 - DB 스키마 자동 초기화
    async with SQLiteAdapter(settings.db_path) as db:
        await init_ledger_schema(db, settings.default_currencies)

    logger.info("Web: 장부 준비 완료", extra={"db_path": str(settings.db_path)})

    yield


app = FastAPI(
    title="CashLedger API",
    description="다중 통화 현금 장부 API",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(operations.router)
app.include_router(balances.router)
app.include_router(rates.router)
app.include_router(history.router)
app.include_router(currencies.router)
app.include_router(spreadsheet.router)
