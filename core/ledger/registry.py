"""
통화 레지스트리

통화 코드는 열린 집합이다. 연산에 처음 등장하는 코드는 자동 등록된다.
모든 메서드는 호출자의 트랜잭션 안에서 동작하며 스스로 커밋하지 않는다.
"""

import logging
from typing import Iterable

from core.ledger.errors import ValidationError
from core.ledger.models import Currency
from core.ledger.store import LedgerStore
from core.types import normalize_currency_code

logger = logging.getLogger(__name__)


class CurrencyRegistry:
    """통화 레지스트리

    Args:
        store: LedgerStore 인스턴스
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def ensure(self, code: str) -> str:
        """통화가 없으면 등록 (Currency + Balance 0 + RateToUsd 기본값)

        Returns:
            정규화된 통화 코드

        Raises:
            ValidationError: 빈 코드
        """
        normalized = normalize_currency_code(code)
        if not normalized:
            raise ValidationError("통화 코드가 비어 있습니다")

        await self.store.ensure_currency(normalized)
        return normalized

    async def seed(self, codes: Iterable[str]) -> None:
        """기본 통화 일괄 등록"""
        for code in codes:
            if normalize_currency_code(code):
                await self.ensure(code)

    async def add_currency(self, code: str, name: str | None = None, is_active: bool = True) -> Currency:
        """통화 명시 등록

        Raises:
            ValidationError: 빈 코드 또는 이미 존재하는 코드
        """
        normalized = normalize_currency_code(code)
        if not normalized:
            raise ValidationError("통화 코드가 비어 있습니다")

        if await self.store.get_currency(normalized) is not None:
            raise ValidationError(f"이미 등록된 통화입니다: {normalized}")

        currency = Currency(
            code=normalized,
            name=(name or "").strip() or normalized,
            is_active=is_active,
        )
        await self.store.ensure_currency(currency.code, currency.name)
        if not is_active:
            await self.store.update_currency(currency.code, currency.name, False)

        logger.info(
            "통화 추가",
            extra={"code": currency.code, "currency_name": currency.name},
        )
        return currency

    async def update_currency(self, code: str, name: str | None = None, is_active: bool | None = None) -> Currency:
        """통화 이름/활성 여부 변경

        Raises:
            ValidationError: 등록되지 않은 코드
        """
        normalized = normalize_currency_code(code)
        existing = await self.store.get_currency(normalized) if normalized else None
        if existing is None:
            raise ValidationError(f"등록되지 않은 통화입니다: {code}")

        updated = Currency(
            code=existing.code,
            name=(name or "").strip() or existing.name,
            is_active=existing.is_active if is_active is None else is_active,
        )
        await self.store.update_currency(updated.code, updated.name, updated.is_active)
        return updated

    async def list_currencies(self, active_only: bool = False) -> list[Currency]:
        return await self.store.list_currencies(active_only)
