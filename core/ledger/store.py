"""
Ledger 저장소

연산 로그, 잔액/환율 Projection, 변경 이력, 통화 레지스트리의 행 단위 저장/조회.

커밋하지 않는다. 트랜잭션 경계는 LedgerEngine이 잡는다.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Mapping

from core.constants import Defaults
from core.ledger.models import Currency, Operation, OperationChange, decimal_to_str
from core.ledger.types import ChangeAction
from core.types import OperationType, to_naive_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

_OPERATION_COLUMNS = """
    id, date, type, source_currency, source_amount,
    target_currency, target_amount, rate, commission, usd_equivalent,
    expense_category, expense_comment
"""

_CHANGE_COLUMNS = "id, operation_id, action, timestamp, details, reason"


def utc_now() -> str:
    """현재 UTC 시각 (ISO-8601)"""
    return datetime.now(timezone.utc).isoformat()


def default_rate(currency: str) -> Decimal:
    """RateToUsd 기본값 (USD=1, 나머지 0)"""
    return Decimal("1") if currency == Defaults.BASE_CURRENCY else Decimal("0")


class LedgerStore:
    """Ledger 저장소

    Operation 행과 balance / rate_to_usd / pair_rate Projection,
    append-only operation_change를 관리.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # =========================================================================
    # Currency
    # =========================================================================

    async def ensure_currency(self, code: str, name: str | None = None) -> bool:
        """통화가 없으면 Currency/Balance/RateToUsd 행을 함께 생성

        INSERT OR IGNORE이므로 몇 번 호출해도 안전.

        Returns:
            새로 생성되었으면 True
        """
        cursor = await self.db.execute(
            """
            INSERT OR IGNORE INTO currency (code, name, is_active)
            VALUES (?, ?, 1)
            """,
            (code, name or code),
        )
        created = cursor.rowcount > 0

        await self.db.execute(
            "INSERT OR IGNORE INTO balance (currency, amount) VALUES (?, '0')",
            (code,),
        )
        await self.db.execute(
            "INSERT OR IGNORE INTO rate_to_usd (currency, rate) VALUES (?, ?)",
            (code, str(default_rate(code))),
        )

        if created:
            logger.debug(f"통화 등록: {code}")
        return created

    async def get_currency(self, code: str) -> Currency | None:
        row = await self.db.fetchone(
            "SELECT code, name, is_active FROM currency WHERE code = ?",
            (code,),
        )
        if not row:
            return None
        return Currency(code=row[0], name=row[1], is_active=bool(row[2]))

    async def update_currency(self, code: str, name: str, is_active: bool) -> None:
        await self.db.execute(
            "UPDATE currency SET name = ?, is_active = ? WHERE code = ?",
            (name, 1 if is_active else 0, code),
        )

    async def list_currencies(self, active_only: bool = False) -> list[Currency]:
        """통화 목록 (code 오름차순)"""
        sql = "SELECT code, name, is_active FROM currency"
        if active_only:
            sql += " WHERE is_active = 1"
        sql += " ORDER BY code"

        rows = await self.db.fetchall(sql)
        return [
            Currency(code=row[0], name=row[1], is_active=bool(row[2]))
            for row in rows
        ]

    async def list_currency_codes(self) -> list[str]:
        rows = await self.db.fetchall("SELECT code FROM currency ORDER BY code")
        return [row[0] for row in rows]

    # =========================================================================
    # Operation
    # =========================================================================

    async def insert_operation(self, operation: Operation) -> int:
        """연산 저장 (id는 AUTOINCREMENT로 새로 부여)

        Returns:
            부여된 operation id
        """
        cursor = await self.db.execute(
            """
            INSERT INTO operation (
                date, type, source_currency, source_amount,
                target_currency, target_amount, rate, commission, usd_equivalent,
                expense_category, expense_comment
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                operation.date.isoformat(),
                operation.type.value,
                operation.source_currency,
                str(operation.source_amount),
                operation.target_currency,
                str(operation.target_amount),
                str(operation.rate),
                decimal_to_str(operation.commission),
                str(operation.usd_equivalent),
                operation.expense_category,
                operation.expense_comment,
            ),
        )
        return int(cursor.lastrowid)

    async def get_operation(self, operation_id: int) -> Operation | None:
        row = await self.db.fetchone(
            f"SELECT {_OPERATION_COLUMNS} FROM operation WHERE id = ?",
            (operation_id,),
        )
        if not row:
            return None
        return self._row_to_operation(row)

    async def list_operations(self, newest_first: bool = True) -> list[Operation]:
        """연산 목록

        Args:
            newest_first: True면 (date, id) 내림차순, False면 오름차순 (재생 순서)
        """
        order = "DESC" if newest_first else "ASC"
        rows = await self.db.fetchall(
            f"SELECT {_OPERATION_COLUMNS} FROM operation "
            f"ORDER BY date {order}, id {order}"
        )
        return [self._row_to_operation(row) for row in rows]

    async def delete_operation(self, operation_id: int) -> None:
        await self.db.execute("DELETE FROM operation WHERE id = ?", (operation_id,))

    async def clear_operations(self) -> None:
        """연산 전체 삭제 + id 시퀀스 초기화"""
        await self.db.execute("DELETE FROM operation")
        await self.db.execute("DELETE FROM sqlite_sequence WHERE name = 'operation'")

    # =========================================================================
    # Balance
    # =========================================================================

    async def get_balance(self, currency: str) -> Decimal:
        """통화 잔액 (없으면 0)"""
        row = await self.db.fetchone(
            "SELECT amount FROM balance WHERE currency = ?",
            (currency,),
        )
        return Decimal(row[0]) if row else Decimal("0")

    async def get_balances(self) -> dict[str, Decimal]:
        rows = await self.db.fetchall("SELECT currency, amount FROM balance ORDER BY currency")
        return {row[0]: Decimal(row[1]) for row in rows}

    async def add_to_balance(self, currency: str, delta: Decimal) -> Decimal:
        """잔액에 변화량 반영

        Returns:
            반영 후 잔액
        """
        new_amount = await self.get_balance(currency) + delta

        # Upsert
        await self.db.execute(
            """
            INSERT INTO balance (currency, amount) VALUES (?, ?)
            ON CONFLICT(currency) DO UPDATE SET
                amount = excluded.amount,
                updated_at = datetime('now')
            """,
            (currency, str(new_amount)),
        )
        return new_amount

    async def reset_balances(self) -> None:
        """모든 통화 잔액을 0으로"""
        await self.db.execute(
            "UPDATE balance SET amount = '0', updated_at = datetime('now')"
        )

    # =========================================================================
    # RateToUsd
    # =========================================================================

    async def get_usd_rates(self) -> dict[str, Decimal]:
        rows = await self.db.fetchall("SELECT currency, rate FROM rate_to_usd ORDER BY currency")
        return {row[0]: Decimal(row[1]) for row in rows}

    async def upsert_rate(self, currency: str, rate: Decimal) -> None:
        await self.db.execute(
            """
            INSERT INTO rate_to_usd (currency, rate) VALUES (?, ?)
            ON CONFLICT(currency) DO UPDATE SET
                rate = excluded.rate,
                updated_at = datetime('now')
            """,
            (currency, str(rate)),
        )

    async def reset_rates(self) -> None:
        """환율 캐시를 기본값으로 (USD=1, 나머지 0)"""
        await self.db.execute(
            """
            UPDATE rate_to_usd
            SET rate = CASE WHEN currency = ? THEN '1' ELSE '0' END,
                updated_at = datetime('now')
            """,
            (Defaults.BASE_CURRENCY,),
        )

    # =========================================================================
    # PairRate
    # =========================================================================

    async def upsert_pair_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate: Decimal,
        updated_at: str | None = None,
    ) -> None:
        await self.db.execute(
            """
            INSERT INTO pair_rate (from_currency, to_currency, rate, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(from_currency, to_currency) DO UPDATE SET
                rate = excluded.rate,
                updated_at = excluded.updated_at
            """,
            (from_currency, to_currency, str(rate), updated_at or utc_now()),
        )

    async def get_pair_rate(self, from_currency: str, to_currency: str) -> Decimal | None:
        row = await self.db.fetchone(
            """
            SELECT rate FROM pair_rate
            WHERE from_currency = ? AND to_currency = ?
            """,
            (from_currency, to_currency),
        )
        return Decimal(row[0]) if row else None

    async def clear_pair_rates(self) -> None:
        await self.db.execute("DELETE FROM pair_rate")

    async def write_projection(
        self,
        balances: Mapping[str, Decimal],
        rates: Mapping[str, Decimal],
        pair_rates: Mapping[tuple[str, str], Decimal],
    ) -> None:
        """재생 결과를 Projection 테이블에 기록 (reset 이후 호출)"""
        for currency, amount in balances.items():
            await self.ensure_currency(currency)
            await self.add_to_balance(currency, amount)

        for currency, rate in rates.items():
            await self.upsert_rate(currency, rate)

        now = utc_now()
        for (from_currency, to_currency), rate in pair_rates.items():
            await self.upsert_pair_rate(from_currency, to_currency, rate, now)

    # =========================================================================
    # OperationChange
    # =========================================================================

    async def insert_change(
        self,
        operation_id: int | None,
        action: ChangeAction,
        details: str,
        reason: str | None = None,
    ) -> int:
        """변경 이력 추가 (append-only)

        Returns:
            change id
        """
        cursor = await self.db.execute(
            """
            INSERT INTO operation_change (operation_id, action, timestamp, details, reason)
            VALUES (?, ?, ?, ?, ?)
            """,
            (operation_id, action.value, utc_now(), details, reason),
        )
        return int(cursor.lastrowid)

    async def get_change(self, change_id: int) -> OperationChange | None:
        row = await self.db.fetchone(
            f"SELECT {_CHANGE_COLUMNS} FROM operation_change WHERE id = ?",
            (change_id,),
        )
        if not row:
            return None
        return self._row_to_change(row)

    async def list_changes(self, operation_id: int | None = None) -> list[OperationChange]:
        """변경 이력 (timestamp, id 내림차순)"""
        if operation_id is None:
            rows = await self.db.fetchall(
                f"SELECT {_CHANGE_COLUMNS} FROM operation_change "
                "ORDER BY timestamp DESC, id DESC"
            )
        else:
            rows = await self.db.fetchall(
                f"SELECT {_CHANGE_COLUMNS} FROM operation_change "
                "WHERE operation_id = ? ORDER BY timestamp DESC, id DESC",
                (operation_id,),
            )
        return [self._row_to_change(row) for row in rows]

    async def clear_changes(self) -> None:
        await self.db.execute("DELETE FROM operation_change")

    # =========================================================================
    # FxRateDisplayConfig
    # =========================================================================

    async def get_display_mode(self, from_currency: str, to_currency: str) -> str | None:
        row = await self.db.fetchone(
            """
            SELECT display_mode FROM fx_rate_display_config
            WHERE from_currency = ? AND to_currency = ?
            """,
            (from_currency, to_currency),
        )
        return row[0] if row else None

    async def upsert_display_mode(
        self,
        from_currency: str,
        to_currency: str,
        display_mode: str,
    ) -> None:
        await self.db.execute(
            """
            INSERT INTO fx_rate_display_config (from_currency, to_currency, display_mode, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(from_currency, to_currency) DO UPDATE SET
                display_mode = excluded.display_mode,
                updated_at = excluded.updated_at
            """,
            (from_currency, to_currency, display_mode, utc_now()),
        )

    # =========================================================================
    # Row 변환
    # =========================================================================

    def _row_to_operation(self, row: tuple[Any, ...]) -> Operation:
        return Operation(
            id=row[0],
            date=to_naive_utc(datetime.fromisoformat(row[1])),
            type=OperationType(row[2]),
            source_currency=row[3],
            source_amount=Decimal(row[4]),
            target_currency=row[5],
            target_amount=Decimal(row[6]),
            rate=Decimal(row[7]),
            commission=Decimal(row[8]) if row[8] is not None else None,
            usd_equivalent=Decimal(row[9]),
            expense_category=row[10],
            expense_comment=row[11],
        )

    def _row_to_change(self, row: tuple[Any, ...]) -> OperationChange:
        return OperationChange(
            id=row[0],
            operation_id=row[1],
            action=ChangeAction(row[2]),
            timestamp=datetime.fromisoformat(row[3]),
            details=row[4],
            reason=row[5],
        )
