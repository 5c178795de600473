"""
Ledger 엔진

연산 생성/삭제/복원/일괄 교체를 하나의 트랜잭션 단위로 처리.

각 공개 연산은 all-or-nothing:
- 검증/잔액 부족/복원 불가 → 아무것도 쓰지 않고 실패 결과 반환
- DB 오류, 저장값 해석 실패 → 전체 롤백 후 PERSISTENCE 결과 반환
- 변경 이력 기록 실패만 예외: SAVEPOINT로 되돌리고 로그만 남긴 채 계속 진행
"""

import logging
import sqlite3
from dataclasses import replace
from decimal import Decimal
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable

from core.constants import LedgerLimits
from core.ledger import snapshot
from core.ledger.errors import (
    InsufficientFundsError,
    LedgerError,
    PersistenceError,
    RestoreFailedError,
    ValidationError,
)
from core.ledger.models import (
    Currency,
    LedgerResult,
    Operation,
    OperationChange,
    OperationDraft,
)
from core.ledger.projector import (
    balance_deltas,
    debited_amount,
    derive_operation,
    normalize_imported,
    pair_rate_update,
    project,
    rate_cache_updates,
    reverse_deltas,
    sort_key,
)
from core.ledger.registry import CurrencyRegistry
from core.ledger.store import LedgerStore
from core.ledger.types import ChangeAction, LedgerErrorKind
from core.types import OperationType, normalize_currency_code, to_naive_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

# 트랜잭션 안에서 나면 전체 롤백 후 PERSISTENCE로 변환하는 예외
# (DB 오류, 저장된 값의 Decimal/일시 해석 실패)
UNEXPECTED_ERRORS = (sqlite3.Error, ArithmeticError, TypeError, ValueError)


def _require_finite(*values: Decimal | None) -> None:
    """NaN/Infinity 금액/환율 거부"""
    for value in values:
        if value is not None and not value.is_finite():
            raise ValidationError(f"유한한 수가 아닙니다: {value}")


class LedgerEngine:
    """장부 엔진

    Args:
        db: SQLite 어댑터 (쓰기 가능)
        rebuild_rates_on_delete: 삭제 후 환율 캐시/통화쌍 환율까지 재계산할지 여부

    사용 예시:
    ```python
    engine = LedgerEngine(db)
    result = await engine.create_operation(OperationDraft(
        date=datetime(2026, 1, 5),
        type=OperationType.INCOME,
        source_currency="USD",
        source_amount=Decimal("100"),
    ))
    if not result.ok:
        print(result.error, result.reason)
    ```
    """

    def __init__(self, db: "SQLiteAdapter", rebuild_rates_on_delete: bool = False):
        self.db = db
        self.store = LedgerStore(db)
        self.registry = CurrencyRegistry(self.store)
        self.rebuild_rates_on_delete = rebuild_rates_on_delete

    # =========================================================================
    # 공개 연산
    # =========================================================================

    async def create_operation(self, draft: OperationDraft) -> LedgerResult:
        """연산 생성

        Returns:
            성공 시 operation에 확정 연산 (id 포함)
        """
        try:
            draft = self._validate_draft(draft)
        except ValidationError as e:
            logger.warning(f"연산 입력 검증 실패: {e}")
            return LedgerResult.failure(e.kind, str(e))

        result = await self._run("create", lambda: self._create(draft))
        if result.ok and result.operation is not None:
            op = result.operation
            logger.info(
                f"연산 생성: #{op.id} {op.type.value} {op.source_amount} {op.source_currency}",
                extra={"operation_id": op.id, "operation_type": op.type.value},
            )
        return result

    async def delete_operation(self, operation_id: int, reason: str | None = None) -> LedgerResult:
        """연산 삭제

        없는 id는 성공(no-op)으로 처리하며 operation은 None.
        """
        result = await self._run("delete", lambda: self._delete(operation_id, reason))
        if result.ok:
            logger.info(
                f"연산 삭제: #{operation_id}",
                extra={"operation_id": operation_id, "found": result.operation is not None},
            )
        return result

    async def restore_operation(self, change_id: int) -> LedgerResult:
        """삭제 이력에서 연산 복원 (새 id로 재삽입)"""
        result = await self._run("restore", lambda: self._restore(change_id))
        if result.ok and result.operation is not None:
            logger.info(
                f"연산 복원: change #{change_id} → #{result.operation.id}",
                extra={"change_id": change_id, "operation_id": result.operation.id},
            )
        return result

    async def replace_all_operations(self, operations: Iterable[Operation]) -> LedgerResult:
        """연산 로그 전체 교체 (스프레드시트 가져오기용)

        잔액 검증과 변경 이력 기록을 하지 않는다.
        """
        imported = list(operations)
        result = await self._run("replace_all", lambda: self._replace_all(imported))
        if result.ok:
            logger.info(f"연산 일괄 교체: {len(imported)}건", extra={"count": len(imported)})
        return result

    # =========================================================================
    # 조회
    # =========================================================================

    async def get_operations(self) -> list[Operation]:
        """연산 목록 (date, id 내림차순)"""
        return await self.store.list_operations(newest_first=True)

    async def get_operation(self, operation_id: int) -> Operation | None:
        return await self.store.get_operation(operation_id)

    async def get_balances(self) -> dict[str, Decimal]:
        return await self.store.get_balances()

    async def get_usd_rates(self) -> dict[str, Decimal]:
        return await self.store.get_usd_rates()

    async def get_last_pair_rate(self, from_currency: str, to_currency: str) -> Decimal | None:
        """통화쌍의 마지막 환전 환율 (없으면 None)"""
        return await self.store.get_pair_rate(
            normalize_currency_code(from_currency),
            normalize_currency_code(to_currency),
        )

    async def get_operation_changes(self, operation_id: int | None = None) -> list[OperationChange]:
        """변경 이력 (timestamp, id 내림차순)"""
        return await self.store.list_changes(operation_id)

    async def get_change(self, change_id: int) -> OperationChange | None:
        return await self.store.get_change(change_id)

    async def list_currencies(self, active_only: bool = False) -> list[Currency]:
        return await self.registry.list_currencies(active_only)

    # =========================================================================
    # 트랜잭션 실행
    # =========================================================================

    async def _run(
        self,
        action: str,
        work: Callable[[], Awaitable[Operation | None]],
    ) -> LedgerResult:
        """work를 하나의 트랜잭션에서 실행하고 결과로 변환"""
        try:
            async with self.db.transaction():
                operation = await work()
        except LedgerError as e:
            logger.warning(f"{action} 실패: {e}", extra={"error_kind": e.kind.value})
            return LedgerResult.failure(e.kind, str(e))
        except UNEXPECTED_ERRORS as e:
            error = PersistenceError(f"{action} 중단, 전체 롤백: {e}")
            logger.error(str(error), exc_info=True, extra={"error_kind": error.kind.value})
            return LedgerResult.failure(error.kind, str(error))

        return LedgerResult.success(operation)

    async def _create(self, draft: OperationDraft) -> Operation:
        # 잔액 검증은 어떤 쓰기보다 먼저
        debit = debited_amount(draft.type, draft.source_amount)
        if debit > 0:
            balance = await self.store.get_balance(draft.source_currency)
            if balance - debit < -LedgerLimits.EPSILON:
                raise InsufficientFundsError(draft.source_currency, balance, debit)

        await self.registry.ensure(draft.source_currency)
        if draft.target_currency:
            await self.registry.ensure(draft.target_currency)

        usd_rates = await self.store.get_usd_rates()
        derived = derive_operation(draft, usd_rates)

        operation_id = await self.store.insert_operation(derived)
        operation = derived.with_id(operation_id)

        await self._apply(operation)
        await self._try_log_change(operation.id, ChangeAction.CREATE, snapshot.encode(operation))
        return operation

    async def _delete(self, operation_id: int, reason: str | None) -> Operation | None:
        operation = await self.store.get_operation(operation_id)
        if operation is None:
            logger.info(f"삭제할 연산 없음: #{operation_id}")
            return None

        for delta in reverse_deltas(operation):
            await self.store.add_to_balance(delta.currency, delta.amount)

        await self.store.delete_operation(operation_id)

        if self.rebuild_rates_on_delete:
            await self._rebuild_projections()

        await self._try_log_change(
            operation_id,
            ChangeAction.DELETE,
            snapshot.encode(operation),
            reason=reason,
        )
        return operation

    async def _restore(self, change_id: int) -> Operation:
        change = await self.store.get_change(change_id)
        if change is None:
            raise RestoreFailedError(f"변경 이력을 찾을 수 없습니다: #{change_id}")

        if change.action != ChangeAction.DELETE:
            raise RestoreFailedError(
                f"삭제 이력만 복원할 수 있습니다: #{change_id} ({change.action.value})"
            )

        decoded = snapshot.decode(change.details)
        if decoded is None:
            raise RestoreFailedError(f"스냅샷을 해석할 수 없습니다: #{change_id}")

        await self.registry.ensure(decoded.source_currency)
        await self.registry.ensure(decoded.target_currency)

        operation_id = await self.store.insert_operation(decoded)
        restored = decoded.with_id(operation_id)

        await self._rebuild_projections()
        await self._try_log_change(
            restored.id,
            ChangeAction.RESTORE,
            snapshot.encode(restored),
            reason=f"Restored from change #{change_id}",
        )
        return restored

    async def _replace_all(self, imported: list[Operation]) -> None:
        for operation in imported:
            _require_finite(
                operation.source_amount,
                operation.target_amount,
                operation.rate,
                operation.commission,
                operation.usd_equivalent,
            )
        ordered = sorted((normalize_imported(op) for op in imported), key=sort_key)

        await self.store.clear_operations()
        await self.store.clear_changes()
        await self.store.reset_balances()
        await self.store.reset_rates()
        await self.store.clear_pair_rates()

        for operation in ordered:
            source = await self.registry.ensure(operation.source_currency)
            target = await self.registry.ensure(operation.target_currency)
            operation = replace(operation, source_currency=source, target_currency=target)

            operation_id = await self.store.insert_operation(operation)
            await self._apply(operation.with_id(operation_id))

    # =========================================================================
    # Projection
    # =========================================================================

    async def _apply(self, operation: Operation) -> None:
        """잔액/환율 캐시/통화쌍 환율에 연산 하나 반영"""
        for delta in balance_deltas(operation):
            await self.store.add_to_balance(delta.currency, delta.amount)

        for currency, rate in rate_cache_updates(operation).items():
            await self.store.upsert_rate(currency, rate)

        pair = pair_rate_update(operation)
        if pair is not None:
            await self.store.upsert_pair_rate(pair.from_currency, pair.to_currency, pair.rate)

    async def _rebuild_projections(self) -> None:
        """연산 로그 전체를 (date, id) 순서로 재생하여 Projection 재구성"""
        operations = await self.store.list_operations(newest_first=False)

        await self.store.reset_balances()
        await self.store.reset_rates()
        await self.store.clear_pair_rates()

        projection = project(operations)
        await self.store.write_projection(
            projection.balances,
            projection.rates,
            projection.pair_rates,
        )
        logger.debug(f"Projection 재구성: {len(operations)}건")

    async def _try_log_change(
        self,
        operation_id: int | None,
        action: ChangeAction,
        details: str,
        reason: str | None = None,
    ) -> None:
        """변경 이력 기록 (실패해도 업무 트랜잭션은 계속)"""
        try:
            async with self.db.savepoint("change_log"):
                await self.store.insert_change(operation_id, action, details, reason)
        except sqlite3.Error as e:
            logger.error(
                f"변경 이력 기록 실패: {action.value} #{operation_id}: {e}",
                extra={"operation_id": operation_id, "action": action.value},
                exc_info=True,
            )

    # =========================================================================
    # 검증
    # =========================================================================

    def _validate_draft(self, draft: OperationDraft) -> OperationDraft:
        """초안 검증 + 통화 코드/분류 정규화

        Raises:
            ValidationError: 규칙 위반
        """
        source = normalize_currency_code(draft.source_currency)
        if not source:
            raise ValidationError("원천 통화가 비어 있습니다")

        if draft.date is None:
            raise ValidationError("연산 일시가 비어 있습니다")

        _require_finite(draft.source_amount, draft.rate, draft.commission)

        if draft.source_amount is None or draft.source_amount <= 0:
            raise ValidationError("금액은 0보다 커야 합니다")

        if draft.commission is not None and draft.commission < 0:
            raise ValidationError("수수료는 음수일 수 없습니다")

        target: str | None = None
        if draft.type == OperationType.EXCHANGE:
            target = normalize_currency_code(draft.target_currency)
            if not target:
                raise ValidationError("환전 대상 통화가 비어 있습니다")
            if target == source:
                raise ValidationError("환전 대상 통화는 원천 통화와 달라야 합니다")
            if draft.rate is None or draft.rate <= 0:
                raise ValidationError("환율은 0보다 커야 합니다")
        elif draft.rate is not None and draft.rate < 0:
            raise ValidationError("환율은 음수일 수 없습니다")

        category = (draft.expense_category or "").strip() or None
        comment = (draft.expense_comment or "").strip() or None
        if draft.type == OperationType.EXPENSE and category is None:
            raise ValidationError("지출 분류가 비어 있습니다")

        return replace(
            draft,
            date=to_naive_utc(draft.date),
            source_currency=source,
            target_currency=target,
            expense_category=category,
            expense_comment=comment,
        )
