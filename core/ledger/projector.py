"""
Balance Projector

연산 하나가 만드는 잔액 변화/환율 캐시 변화와 그 역연산을 계산하는 순수 함수 모음.
DB에 접근하지 않으며, 엔진이 트랜잭션 안에서 결과를 저장한다.

잔액 규칙:
- Income:   source +amount
- Expense:  source -amount
- Exchange: source -amount, target +target_amount (수수료 차감 후)
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, Mapping

from core.constants import Defaults
from core.ledger.models import Operation, OperationDraft
from core.types import OperationType, normalize_currency_code, to_naive_utc

USD = Defaults.BASE_CURRENCY
ZERO = Decimal("0")
ONE = Decimal("1")


@dataclass(frozen=True)
class BalanceDelta:
    """통화별 잔액 변화량"""

    currency: str
    amount: Decimal


@dataclass(frozen=True)
class PairRateUpdate:
    """통화쌍 최근 환율 갱신"""

    from_currency: str
    to_currency: str
    rate: Decimal


@dataclass
class Projection:
    """연산 로그 전체에서 계산한 파생 상태

    rates는 재생 중 갱신된 통화만 포함 (나머지는 레지스트리 기본값).
    pair_rates는 (from, to) → 마지막 환율.
    """

    balances: dict[str, Decimal] = field(default_factory=dict)
    rates: dict[str, Decimal] = field(default_factory=dict)
    pair_rates: dict[tuple[str, str], Decimal] = field(default_factory=dict)

    def apply(self, operation: Operation) -> None:
        """연산 하나를 재생 (Create의 잔액/환율/통화쌍 갱신 단계와 동일)"""
        for delta in balance_deltas(operation):
            current = self.balances.get(delta.currency, ZERO)
            self.balances[delta.currency] = current + delta.amount

        self.rates.update(rate_cache_updates(operation))

        pair = pair_rate_update(operation)
        if pair is not None:
            self.pair_rates[(pair.from_currency, pair.to_currency)] = pair.rate


# =========================================================================
# 파생 값 계산
# =========================================================================

def exchange_target_amount(
    source_amount: Decimal,
    rate: Decimal,
    commission: Decimal | None,
) -> Decimal:
    """환전 수령액 (수수료 차감, 음수 불가)"""
    raw = source_amount * rate
    fee = commission if commission is not None else ZERO
    return max(ZERO, raw - fee)


def canonical_rate(source_amount: Decimal, target_amount: Decimal) -> Decimal:
    """실현 환율 = target / source (source가 0이면 0)"""
    if source_amount == 0:
        return ZERO
    return target_amount / source_amount


def cached_rate(usd_rates: Mapping[str, Decimal], currency: str) -> Decimal:
    """캐시된 USD 환율 (USD는 항상 1, 없으면 0)"""
    if currency == USD:
        return ONE
    return usd_rates.get(currency, ZERO)


def usd_equivalent(
    operation_type: OperationType,
    source_currency: str,
    source_amount: Decimal,
    target_currency: str,
    target_amount: Decimal,
    rate: Decimal,
    usd_rates: Mapping[str, Decimal],
) -> Decimal:
    """보고용 USD 환산액

    Income/Expense: USD면 금액 그대로, 아니면 amount * rate
    Exchange: 대상이 USD면 수령액, 원천이 USD면 원천 금액,
              그 외에는 수령액 * 대상 통화의 캐시 환율
    """
    if operation_type in (OperationType.INCOME, OperationType.EXPENSE):
        if source_currency == USD:
            return source_amount
        return source_amount * rate

    if target_currency == USD:
        return target_amount
    if source_currency == USD:
        return source_amount
    return target_amount * cached_rate(usd_rates, target_currency)


def derive_operation(
    draft: OperationDraft,
    usd_rates: Mapping[str, Decimal],
) -> Operation:
    """초안에서 확정 연산 생성 (id는 저장 전이므로 0)

    Args:
        draft: 검증된 초안 (통화 코드는 정규화된 상태)
        usd_rates: 현재 RateToUsd 캐시
    """
    source = draft.source_currency
    amount = draft.source_amount

    if draft.type == OperationType.EXCHANGE:
        target = draft.target_currency or source
        quoted = draft.rate if draft.rate is not None else ZERO
        target_amount = exchange_target_amount(amount, quoted, draft.commission)
        rate = canonical_rate(amount, target_amount)
    else:
        target = source
        target_amount = amount
        if source == USD:
            rate = ONE
        elif draft.rate is not None:
            rate = draft.rate
        else:
            rate = cached_rate(usd_rates, source)

    return Operation(
        id=0,
        date=draft.date,
        type=draft.type,
        source_currency=source,
        source_amount=amount,
        target_currency=target,
        target_amount=target_amount,
        rate=rate,
        commission=draft.commission,
        usd_equivalent=usd_equivalent(
            draft.type, source, amount, target, target_amount, rate, usd_rates
        ),
        expense_category=draft.expense_category if draft.type == OperationType.EXPENSE else None,
        expense_comment=draft.expense_comment if draft.type == OperationType.EXPENSE else None,
    )


def normalize_imported(operation: Operation) -> Operation:
    """일괄 교체용 정규화

    Income/Expense는 대상 = 원천으로 강제하고,
    Exchange는 금액에서 실현 환율을 다시 계산한다 (가져온 rate 필드는 신뢰하지 않음).
    일시는 naive UTC, 통화 코드는 대문자로 맞춘다.
    """
    operation = replace(
        operation,
        date=to_naive_utc(operation.date),
        source_currency=normalize_currency_code(operation.source_currency),
        target_currency=normalize_currency_code(operation.target_currency),
    )
    if operation.type != OperationType.EXCHANGE:
        return replace(
            operation,
            target_currency=operation.source_currency,
            target_amount=operation.source_amount,
        )

    if operation.source_amount > 0:
        return replace(
            operation,
            rate=canonical_rate(operation.source_amount, operation.target_amount),
        )
    return operation


# =========================================================================
# 잔액 / 환율 변화
# =========================================================================

def balance_deltas(operation: Operation) -> list[BalanceDelta]:
    """연산이 잔액에 주는 변화량"""
    if operation.type == OperationType.INCOME:
        return [BalanceDelta(operation.source_currency, operation.source_amount)]

    if operation.type == OperationType.EXPENSE:
        return [BalanceDelta(operation.source_currency, -operation.source_amount)]

    return [
        BalanceDelta(operation.source_currency, -operation.source_amount),
        BalanceDelta(operation.target_currency, operation.target_amount),
    ]


def reverse_deltas(operation: Operation) -> list[BalanceDelta]:
    """balance_deltas의 정확한 역연산 (부호 반전)"""
    return [
        BalanceDelta(delta.currency, -delta.amount)
        for delta in balance_deltas(operation)
    ]


def debited_amount(operation_type: OperationType, source_amount: Decimal) -> Decimal:
    """잔액 검증 대상 차감액 (Income은 검증 면제이므로 0)"""
    if operation_type == OperationType.INCOME:
        return ZERO
    return source_amount


def rate_cache_updates(operation: Operation) -> dict[str, Decimal]:
    """연산이 RateToUsd 캐시에 기록하는 값

    Exchange: USD가 한쪽에 있을 때만 반대편 통화에 전파
              (대상이 USD면 rate 그대로, 원천이 USD면 1/rate)
    Income/Expense: 원천이 USD가 아니고 rate > 0이면 원천 통화에 기록
    """
    rate = operation.rate

    if operation.type == OperationType.EXCHANGE:
        if rate <= 0:
            return {}
        if operation.target_currency == USD and operation.source_currency != USD:
            return {operation.source_currency: rate}
        if operation.source_currency == USD and operation.target_currency != USD:
            return {operation.target_currency: ONE / rate}
        return {}

    if operation.source_currency != USD and rate > 0:
        return {operation.source_currency: rate}
    return {}


def pair_rate_update(operation: Operation) -> PairRateUpdate | None:
    """Exchange의 통화쌍 최근 환율 (그 외 연산은 None)"""
    if operation.type != OperationType.EXCHANGE:
        return None
    return PairRateUpdate(
        from_currency=operation.source_currency,
        to_currency=operation.target_currency,
        rate=operation.rate,
    )


def sort_key(operation: Operation) -> tuple:
    """재생 순서: (date, id) 오름차순

    Id 없이 가져온 행(id=0)끼리 날짜가 같으면 내용으로 순서를 정한다.
    입력 순서와 무관하게 같은 재생 순서가 나와야 환율 캐시가 결정적이다.
    """
    return (
        operation.date,
        operation.id,
        operation.type.value,
        operation.source_currency,
        operation.source_amount,
        operation.target_currency,
        operation.target_amount,
        operation.rate,
    )


def project(operations: Iterable[Operation]) -> Projection:
    """연산 목록을 (date, id) 순서로 재생하여 파생 상태 계산"""
    projection = Projection()
    for operation in sorted(operations, key=sort_key):
        projection.apply(operation)
    return projection
