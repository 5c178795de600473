"""
장부 스키마 초기화

Web/CLI 시작 시 자동으로 장부 테이블 생성.
CREATE IF NOT EXISTS 패턴으로 안전하게 동작.

금액/환율은 모두 TEXT(Decimal 문자열)로 저장한다.
"""

import logging
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(
    db: "SQLiteAdapter",
    default_currencies: Iterable[str] = (),
) -> None:
    """장부 스키마 초기화 (테이블 + 인덱스 + 기본 통화)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: SQLiteAdapter 인스턴스
        default_currencies: 최초 등록할 통화 코드 (USD, EUR, RUB 등)
    """
    # 순환 import 방지
    from core.ledger.registry import CurrencyRegistry
    from core.ledger.store import LedgerStore

    await _create_ledger_tables(db)

    registry = CurrencyRegistry(LedgerStore(db))
    async with db.transaction():
        await registry.seed(default_currencies)

    logger.info("장부 스키마 초기화 완료")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """장부 테이블 생성"""

    # currency 테이블 (통화 레지스트리)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS currency (
            code             TEXT PRIMARY KEY,
            name             TEXT NOT NULL,
            is_active        INTEGER NOT NULL DEFAULT 1,
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # operation 테이블 (연산 로그)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS operation (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            date             TEXT NOT NULL,
            type             TEXT NOT NULL,
            source_currency  TEXT NOT NULL,
            source_amount    TEXT NOT NULL,
            target_currency  TEXT NOT NULL,
            target_amount    TEXT NOT NULL,
            rate             TEXT NOT NULL,
            commission       TEXT,
            usd_equivalent   TEXT NOT NULL,
            expense_category TEXT,
            expense_comment  TEXT
        )
    """)

    # balance 테이블 (Projection: 통화별 잔액)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS balance (
            currency         TEXT PRIMARY KEY,
            amount           TEXT NOT NULL DEFAULT '0',
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # rate_to_usd 테이블 (Projection: 통화별 최근 USD 환율)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS rate_to_usd (
            currency         TEXT PRIMARY KEY,
            rate             TEXT NOT NULL DEFAULT '0',
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # pair_rate 테이블 (Projection: 통화쌍 최근 환전 환율)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS pair_rate (
            from_currency    TEXT NOT NULL,
            to_currency      TEXT NOT NULL,
            rate             TEXT NOT NULL,
            updated_at       TEXT NOT NULL,
            PRIMARY KEY (from_currency, to_currency)
        )
    """)

    # operation_change 테이블 (append-only 변경 이력)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS operation_change (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            operation_id     INTEGER,
            action           TEXT NOT NULL,
            timestamp        TEXT NOT NULL,
            details          TEXT NOT NULL,
            reason           TEXT
        )
    """)

    # fx_rate_display_config 테이블 (통화쌍 환율 표시 방식)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS fx_rate_display_config (
            from_currency    TEXT NOT NULL,
            to_currency      TEXT NOT NULL,
            display_mode     TEXT NOT NULL,
            updated_at       TEXT NOT NULL,
            PRIMARY KEY (from_currency, to_currency)
        )
    """)

    # 인덱스 생성
    await db.execute("CREATE INDEX IF NOT EXISTS idx_operation_date ON operation(date, id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_operation_change_operation ON operation_change(operation_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_operation_change_ts ON operation_change(timestamp)")

    await db.commit()
    logger.debug("장부 테이블 생성 완료")
