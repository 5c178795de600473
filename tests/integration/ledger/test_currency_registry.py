"""CurrencyRegistry 통합 테스트"""

from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.errors import ValidationError
from core.ledger.registry import CurrencyRegistry
from core.ledger.store import LedgerStore


@pytest.fixture
def registry(ledger_db: SQLiteAdapter) -> CurrencyRegistry:
    return CurrencyRegistry(LedgerStore(ledger_db))


class TestEnsure:
    """자동 등록"""

    @pytest.mark.asyncio
    async def test_returns_normalized_code(self, registry: CurrencyRegistry) -> None:
        assert await registry.ensure(" try ") == "TRY"
        assert await registry.store.get_balance("TRY") == Decimal("0")

    @pytest.mark.asyncio
    async def test_empty_code(self, registry: CurrencyRegistry) -> None:
        with pytest.raises(ValidationError):
            await registry.ensure("   ")

    @pytest.mark.asyncio
    async def test_seed_skips_blank(self, registry: CurrencyRegistry) -> None:
        await registry.seed(["jpy", "", "  "])

        codes = [c.code for c in await registry.list_currencies()]
        assert codes == ["EUR", "JPY", "RUB", "USD"]


class TestAddCurrency:
    """명시 등록"""

    @pytest.mark.asyncio
    async def test_add(self, registry: CurrencyRegistry) -> None:
        currency = await registry.add_currency("gel", "Georgian lari")

        assert currency.code == "GEL"
        assert currency.name == "Georgian lari"
        assert currency.is_active is True
        assert (await registry.store.get_usd_rates())["GEL"] == Decimal("0")

    @pytest.mark.asyncio
    async def test_add_inactive_defaults_name(self, registry: CurrencyRegistry) -> None:
        currency = await registry.add_currency("AMD", is_active=False)

        stored = await registry.store.get_currency("AMD")
        assert currency.name == "AMD"
        assert stored.is_active is False

    @pytest.mark.asyncio
    async def test_duplicate(self, registry: CurrencyRegistry) -> None:
        with pytest.raises(ValidationError, match="USD"):
            await registry.add_currency("usd")

    @pytest.mark.asyncio
    async def test_blank(self, registry: CurrencyRegistry) -> None:
        with pytest.raises(ValidationError):
            await registry.add_currency("")


class TestUpdateCurrency:
    """이름/활성 여부 변경"""

    @pytest.mark.asyncio
    async def test_deactivate_keeps_name(self, registry: CurrencyRegistry) -> None:
        updated = await registry.update_currency("rub", is_active=False)

        assert updated.code == "RUB"
        assert updated.name == "RUB"
        assert updated.is_active is False
        active = [c.code for c in await registry.list_currencies(active_only=True)]
        assert "RUB" not in active

    @pytest.mark.asyncio
    async def test_rename_keeps_active(self, registry: CurrencyRegistry) -> None:
        updated = await registry.update_currency("EUR", name="Euro")

        assert updated.name == "Euro"
        assert updated.is_active is True

    @pytest.mark.asyncio
    async def test_unknown(self, registry: CurrencyRegistry) -> None:
        with pytest.raises(ValidationError):
            await registry.update_currency("XXX", name="nothing")
