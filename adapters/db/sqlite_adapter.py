"""
SQLite 어댑터

장부 DB 연결 관리 (aiosqlite, WAL 모드).

트랜잭션 규칙:
- transaction(): BEGIN IMMEDIATE로 쓰기 잠금을 먼저 잡고, 블록이 끝나면 COMMIT.
  중첩 호출은 바깥 트랜잭션에 합류하며 가장 바깥 블록만 커밋/롤백한다.
- savepoint(): 트랜잭션 안에서 일부 변경만 되돌린다 (변경 이력 기록 실패 등).

금액/환율 컬럼은 TEXT이므로 Decimal 파라미터는 문자열로 바인딩한다.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import logging
import re
from contextlib import asynccontextmanager
from decimal import Decimal
from pathlib import Path
from typing import Any, AsyncIterator, Iterable

import aiosqlite

logger = logging.getLogger(__name__)

# SAVEPOINT 이름은 식별자만 허용 (SQL에 그대로 들어감)
_SAVEPOINT_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DEFAULT_BUSY_TIMEOUT_MS = 30000


def _bind(parameters: Iterable[Any] | None) -> tuple[Any, ...]:
    """바인딩 파라미터 변환 (Decimal → 문자열)"""
    if not parameters:
        return ()
    return tuple(str(p) if isinstance(p, Decimal) else p for p in parameters)


async def create_connection(
    db_path: Path | str,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> aiosqlite.Connection:
    """장부 DB 연결 생성

    상위 디렉토리가 없으면 만들고 WAL/busy_timeout/외래 키를 설정한다.

    Args:
        db_path: DB 파일 경로
        busy_timeout_ms: 잠금 대기 시간 (밀리초)
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(str(path))
    for pragma in (
        "PRAGMA journal_mode=WAL",
        f"PRAGMA busy_timeout={int(busy_timeout_ms)}",
        "PRAGMA foreign_keys=ON",
    ):
        await conn.execute(pragma)

    logger.info("SQLite 연결 생성", extra={"db_path": str(path)})
    return conn


class SQLiteAdapter:
    """장부 DB 어댑터

    연결 하나를 소유하며 LedgerStore/LedgerEngine이 이 위에서 동작한다.

    Args:
        db_path: DB 파일 경로

    사용 예시:
    ```python
    async with SQLiteAdapter(settings.db_path) as db:
        async with db.transaction():
            await db.execute("UPDATE balance SET amount = ? WHERE currency = ?", (Decimal("10"), "USD"))

            async with db.savepoint("change_log"):
                ...  # 실패해도 바깥 트랜잭션은 유지
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._tx_depth = 0

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """열린 트랜잭션이 있는지 (명시적 BEGIN 또는 미커밋 DML)"""
        return self._conn is not None and self._conn.in_transaction

    def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def connect(self) -> None:
        if self._conn is None:
            self._conn = await create_connection(self.db_path)

    async def close(self) -> None:
        if self._conn is None:
            return
        if self._conn.in_transaction:
            logger.warning("미커밋 트랜잭션이 남은 채로 연결 종료 (폐기됨)")
        await self._conn.close()
        self._conn = None
        self._tx_depth = 0
        logger.info("SQLite 연결 종료", extra={"db_path": str(self.db_path)})

    # -------------------------------------------------------------------------
    # 실행 / 조회
    # -------------------------------------------------------------------------

    async def execute(
        self,
        sql: str,
        parameters: Iterable[Any] | None = None,
    ) -> aiosqlite.Cursor:
        return await self._connection().execute(sql, _bind(parameters))

    async def executemany(
        self,
        sql: str,
        parameters: Iterable[Iterable[Any]],
    ) -> aiosqlite.Cursor:
        return await self._connection().executemany(sql, [_bind(p) for p in parameters])

    async def fetchone(
        self,
        sql: str,
        parameters: Iterable[Any] | None = None,
    ) -> tuple[Any, ...] | None:
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: Iterable[Any] | None = None,
    ) -> list[tuple[Any, ...]]:
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        if self._conn is not None:
            await self._conn.commit()

    async def rollback(self) -> None:
        if self._conn is not None:
            await self._conn.rollback()

    # -------------------------------------------------------------------------
    # 트랜잭션
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """원자적 쓰기 블록

        성공 시 커밋, 예외 시 롤백 후 예외를 다시 던진다.
        이미 transaction() 블록 안이면 새로 시작하지 않고 합류한다.
        """
        conn = self._connection()

        if self._tx_depth > 0:
            self._tx_depth += 1
            try:
                yield conn
            finally:
                self._tx_depth -= 1
            return

        if not conn.in_transaction:
            await conn.execute("BEGIN IMMEDIATE")

        self._tx_depth = 1
        try:
            yield conn
        except Exception:
            await conn.rollback()
            raise
        else:
            await conn.commit()
        finally:
            self._tx_depth = 0

    @asynccontextmanager
    async def savepoint(self, name: str) -> AsyncIterator[None]:
        """부분 롤백 구간

        블록에서 예외가 나면 SAVEPOINT 이후 변경만 되돌리고 예외를 다시 던진다.
        """
        if not _SAVEPOINT_NAME.match(name):
            raise ValueError(f"잘못된 SAVEPOINT 이름: {name!r}")

        await self.execute(f"SAVEPOINT {name}")
        try:
            yield
        except Exception:
            await self.execute(f"ROLLBACK TO SAVEPOINT {name}")
            await self.execute(f"RELEASE SAVEPOINT {name}")
            raise
        await self.execute(f"RELEASE SAVEPOINT {name}")

    # -------------------------------------------------------------------------
    # 스키마 조회
    # -------------------------------------------------------------------------

    async def table_exists(self, table_name: str) -> bool:
        row = await self.fetchone(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table_name,),
        )
        return row is not None

    async def get_table_info(self, table_name: str) -> list[dict[str, Any]]:
        """컬럼 목록 (PRAGMA table_info)"""
        rows = await self.fetchall(f"PRAGMA table_info({table_name})")
        return [
            {
                "cid": cid,
                "name": name,
                "type": col_type,
                "notnull": bool(notnull),
                "default_value": default_value,
                "pk": bool(pk),
            }
            for cid, name, col_type, notnull, default_value, pk in rows
        ]

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
