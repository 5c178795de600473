"""
Balance Projector 테스트

잔액 변화량, 환전 수령액/실현 환율, USD 환산, 환율 캐시 갱신, 재생 순서 확인
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from core.ledger.models import Operation, OperationDraft
from core.ledger.projector import (
    Projection,
    balance_deltas,
    canonical_rate,
    cached_rate,
    debited_amount,
    derive_operation,
    exchange_target_amount,
    normalize_imported,
    pair_rate_update,
    project,
    rate_cache_updates,
    reverse_deltas,
    sort_key,
)
from core.types import OperationType


def _operation(
    op_id: int,
    op_type: OperationType,
    source: str,
    amount: str,
    target: str | None = None,
    target_amount: str | None = None,
    rate: str = "1",
    day: int = 1,
) -> Operation:
    return Operation(
        id=op_id,
        date=datetime(2026, 1, day),
        type=op_type,
        source_currency=source,
        source_amount=Decimal(amount),
        target_currency=target or source,
        target_amount=Decimal(target_amount or amount),
        rate=Decimal(rate),
        commission=None,
        usd_equivalent=Decimal("0"),
    )


class TestExchangeDerivation:
    """환전 수령액 / 실현 환율"""

    def test_fee_adjusted_target_amount(self) -> None:
        """100 @ 1.1, 수수료 2 → 108"""
        assert exchange_target_amount(Decimal("100"), Decimal("1.1"), Decimal("2")) == Decimal("108.0")

    def test_canonical_rate_is_exact(self) -> None:
        """실현 환율 108 / 100 = 1.08 (이진 오차 없음)"""
        target = exchange_target_amount(Decimal("100"), Decimal("1.1"), Decimal("2"))
        assert canonical_rate(Decimal("100"), target) == Decimal("1.08")

    def test_target_amount_never_negative(self) -> None:
        """수수료가 수령액보다 크면 0"""
        assert exchange_target_amount(Decimal("1"), Decimal("1.5"), Decimal("10")) == Decimal("0")

    def test_no_commission(self) -> None:
        """수수료 없음"""
        assert exchange_target_amount(Decimal("50"), Decimal("2"), None) == Decimal("100")

    def test_canonical_rate_zero_source(self) -> None:
        """원천 금액 0이면 환율 0"""
        assert canonical_rate(Decimal("0"), Decimal("10")) == Decimal("0")


class TestDeriveOperation:
    """초안 → 확정 연산"""

    def test_exchange_to_usd(self) -> None:
        """EUR 100 @ 1.08 → USD 108, USD 환산 108"""
        draft = OperationDraft(
            date=datetime(2026, 1, 5),
            type=OperationType.EXCHANGE,
            source_currency="EUR",
            source_amount=Decimal("100"),
            target_currency="USD",
            rate=Decimal("1.08"),
        )

        op = derive_operation(draft, {"USD": Decimal("1")})

        assert op.id == 0
        assert op.target_amount == Decimal("108")
        assert op.rate == Decimal("1.08")
        assert op.usd_equivalent == Decimal("108")

    def test_exchange_between_non_usd_uses_target_cache(self) -> None:
        """EUR → RUB: 수령액 * RUB 캐시 환율"""
        draft = OperationDraft(
            date=datetime(2026, 1, 5),
            type=OperationType.EXCHANGE,
            source_currency="EUR",
            source_amount=Decimal("10"),
            target_currency="RUB",
            rate=Decimal("100"),
        )

        op = derive_operation(draft, {"RUB": Decimal("0.01")})

        assert op.target_amount == Decimal("1000")
        assert op.usd_equivalent == Decimal("10.00")

    def test_exchange_from_usd(self) -> None:
        """USD 원천이면 USD 환산은 원천 금액"""
        draft = OperationDraft(
            date=datetime(2026, 1, 5),
            type=OperationType.EXCHANGE,
            source_currency="USD",
            source_amount=Decimal("50"),
            target_currency="EUR",
            rate=Decimal("0.9"),
        )

        op = derive_operation(draft, {})

        assert op.usd_equivalent == Decimal("50")

    def test_income_usd_rate_is_one(self) -> None:
        """USD Income은 rate 1, 환산 = 금액"""
        draft = OperationDraft(
            date=datetime(2026, 1, 5),
            type=OperationType.INCOME,
            source_currency="USD",
            source_amount=Decimal("100"),
            rate=Decimal("5"),
        )

        op = derive_operation(draft, {})

        assert op.rate == Decimal("1")
        assert op.usd_equivalent == Decimal("100")
        assert op.target_currency == "USD"
        assert op.target_amount == Decimal("100")

    def test_income_without_rate_uses_cache(self) -> None:
        """rate 생략 시 캐시된 USD 환율 사용"""
        draft = OperationDraft(
            date=datetime(2026, 1, 5),
            type=OperationType.INCOME,
            source_currency="EUR",
            source_amount=Decimal("10"),
        )

        op = derive_operation(draft, {"EUR": Decimal("1.1")})

        assert op.rate == Decimal("1.1")
        assert op.usd_equivalent == Decimal("11.0")

    def test_income_keeps_no_expense_fields(self) -> None:
        """Income에는 지출 분류가 남지 않음"""
        draft = OperationDraft(
            date=datetime(2026, 1, 5),
            type=OperationType.INCOME,
            source_currency="USD",
            source_amount=Decimal("1"),
            expense_category="Food",
        )

        assert derive_operation(draft, {}).expense_category is None


class TestBalanceDeltas:
    """잔액 변화량"""

    def test_income(self) -> None:
        deltas = balance_deltas(_operation(1, OperationType.INCOME, "USD", "100"))
        assert [(d.currency, d.amount) for d in deltas] == [("USD", Decimal("100"))]

    def test_expense(self) -> None:
        deltas = balance_deltas(_operation(1, OperationType.EXPENSE, "EUR", "30"))
        assert [(d.currency, d.amount) for d in deltas] == [("EUR", Decimal("-30"))]

    def test_exchange(self) -> None:
        op = _operation(1, OperationType.EXCHANGE, "EUR", "100", "USD", "108", "1.08")
        deltas = balance_deltas(op)
        assert [(d.currency, d.amount) for d in deltas] == [
            ("EUR", Decimal("-100")),
            ("USD", Decimal("108")),
        ]

    def test_reverse_is_exact_inverse(self) -> None:
        """역연산 적용 시 0으로 돌아옴"""
        op = _operation(1, OperationType.EXCHANGE, "EUR", "100", "USD", "108", "1.08")
        totals: dict[str, Decimal] = {}
        for delta in balance_deltas(op) + reverse_deltas(op):
            totals[delta.currency] = totals.get(delta.currency, Decimal("0")) + delta.amount

        assert all(amount == 0 for amount in totals.values())

    def test_debited_amount(self) -> None:
        """Income은 잔액 검증 대상 아님"""
        assert debited_amount(OperationType.INCOME, Decimal("5")) == Decimal("0")
        assert debited_amount(OperationType.EXPENSE, Decimal("5")) == Decimal("5")


class TestRateCacheUpdates:
    """USD 환율 캐시 갱신"""

    def test_exchange_to_usd_caches_source(self) -> None:
        op = _operation(1, OperationType.EXCHANGE, "EUR", "100", "USD", "108", "1.08")
        assert rate_cache_updates(op) == {"EUR": Decimal("1.08")}

    def test_exchange_from_usd_caches_inverse(self) -> None:
        op = _operation(1, OperationType.EXCHANGE, "USD", "100", "RUB", "8000", "80")
        assert rate_cache_updates(op) == {"RUB": Decimal("1") / Decimal("80")}

    def test_exchange_without_usd_does_not_cache(self) -> None:
        op = _operation(1, OperationType.EXCHANGE, "EUR", "10", "RUB", "1000", "100")
        assert rate_cache_updates(op) == {}

    def test_income_non_usd(self) -> None:
        op = _operation(1, OperationType.INCOME, "EUR", "10", rate="1.1")
        assert rate_cache_updates(op) == {"EUR": Decimal("1.1")}

    def test_zero_rate_ignored(self) -> None:
        op = _operation(1, OperationType.INCOME, "EUR", "10", rate="0")
        assert rate_cache_updates(op) == {}

    def test_cached_rate_usd_is_one(self) -> None:
        assert cached_rate({}, "USD") == Decimal("1")
        assert cached_rate({}, "EUR") == Decimal("0")


class TestPairRate:
    """통화쌍 최근 환율"""

    def test_exchange_only(self) -> None:
        assert pair_rate_update(_operation(1, OperationType.INCOME, "USD", "1")) is None

        update = pair_rate_update(
            _operation(1, OperationType.EXCHANGE, "EUR", "100", "USD", "108", "1.08")
        )
        assert update is not None
        assert (update.from_currency, update.to_currency, update.rate) == ("EUR", "USD", Decimal("1.08"))


class TestNormalizeImported:
    """일괄 교체용 정규화"""

    def test_income_target_forced_to_source(self) -> None:
        op = _operation(3, OperationType.INCOME, "EUR", "10", "USD", "99")
        normalized = normalize_imported(op)

        assert normalized.target_currency == "EUR"
        assert normalized.target_amount == Decimal("10")

    def test_exchange_rate_recomputed(self) -> None:
        op = _operation(3, OperationType.EXCHANGE, "EUR", "100", "USD", "108", "9.99")
        assert normalize_imported(op).rate == Decimal("1.08")

    def test_aware_date_and_lowercase_codes(self) -> None:
        """+03:00 일시는 naive UTC로, 통화 코드는 대문자로"""
        op = replace(
            _operation(3, OperationType.EXCHANGE, "eur", "100", "usd", "108", "1.08"),
            date=datetime(2026, 1, 5, 3, 0, tzinfo=timezone(timedelta(hours=3))),
        )

        normalized = normalize_imported(op)

        assert normalized.date == datetime(2026, 1, 5, 0, 0)
        assert normalized.date.tzinfo is None
        assert (normalized.source_currency, normalized.target_currency) == ("EUR", "USD")


class TestProject:
    """전체 재생"""

    def test_replay_in_date_order(self) -> None:
        """입력 순서와 무관하게 (date, id) 순서로 재생"""
        ops = [
            _operation(2, OperationType.EXCHANGE, "USD", "100", "EUR", "90", "0.9", day=3),
            _operation(1, OperationType.INCOME, "USD", "100", day=1),
            _operation(3, OperationType.EXCHANGE, "USD", "100", "EUR", "80", "0.8", day=2),
        ]

        forward = project(ops)
        backward = project(reversed(ops))

        assert forward == backward
        assert forward.balances == {"USD": Decimal("-100"), "EUR": Decimal("170")}
        # 마지막(day=3) 환전의 환율이 남음
        assert forward.pair_rates[("USD", "EUR")] == Decimal("0.9")
        assert forward.rates["EUR"] == Decimal("1") / Decimal("0.9")

    def test_empty(self) -> None:
        assert project([]) == Projection()

    def test_same_date_without_ids_is_order_independent(self) -> None:
        """Id 없이 가져온 같은 날짜 행도 입력 순서와 무관하게 같은 환율 캐시"""
        ops = [
            _operation(0, OperationType.EXCHANGE, "EUR", "100", "USD", "108", "1.08", day=2),
            _operation(0, OperationType.EXCHANGE, "EUR", "100", "USD", "110", "1.1", day=2),
            _operation(0, OperationType.INCOME, "EUR", "200", day=1),
        ]

        forward = project(ops)
        backward = project(reversed(ops))

        assert forward == backward
        assert sorted(ops, key=sort_key) == sorted(reversed(ops), key=sort_key)
