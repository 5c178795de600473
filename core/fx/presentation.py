"""
환율 표시 방식

통화쌍마다 환율을 정방향(1 FROM = ? TO) 또는 역방향(1 TO = ? FROM)으로 보여줄지 저장.

엔진은 항상 정방향 환율만 받는다.
입력 화면은 to_internal_rate()로 변환한 뒤 엔진에 넘기고,
표시할 때는 to_display_rate()를 사용한다.
"""

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from core.ledger.errors import ValidationError
from core.ledger.store import LedgerStore
from core.types import FxRateDisplayMode, normalize_currency_code

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class FxRatePresentationService:
    """통화쌍 환율 표시 방식 관리

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    service = FxRatePresentationService(db)
    await service.set_display_mode("USD", "RUB", FxRateDisplayMode.INVERTED)

    # 화면 입력 0.0125 (1 RUB = 0.0125 USD) → 엔진 환율 80
    rate = await service.to_internal_rate(Decimal("0.0125"), "USD", "RUB")
    ```
    """

    def __init__(self, db: "SQLiteAdapter"):
        self.db = db
        self.store = LedgerStore(db)

    async def get_display_mode(self, from_currency: str, to_currency: str) -> FxRateDisplayMode:
        """표시 방식 조회 (미설정이거나 코드가 비어 있으면 DIRECT)"""
        pair = self._pair(from_currency, to_currency)
        if pair is None:
            return FxRateDisplayMode.DIRECT

        value = await self.store.get_display_mode(*pair)
        try:
            return FxRateDisplayMode(value) if value else FxRateDisplayMode.DIRECT
        except ValueError:
            logger.warning(f"알 수 없는 표시 방식 무시: {value}", extra={"pair": f"{pair[0]}/{pair[1]}"})
            return FxRateDisplayMode.DIRECT

    async def set_display_mode(
        self,
        from_currency: str,
        to_currency: str,
        mode: FxRateDisplayMode,
    ) -> None:
        """표시 방식 저장

        Raises:
            ValidationError: 통화 코드가 비어 있는 경우
        """
        pair = self._pair(from_currency, to_currency)
        if pair is None:
            raise ValidationError("통화쌍 코드가 비어 있습니다")

        async with self.db.transaction():
            await self.store.upsert_display_mode(pair[0], pair[1], FxRateDisplayMode(mode).value)

        logger.info(
            f"환율 표시 방식 변경: {pair[0]}/{pair[1]} → {FxRateDisplayMode(mode).value}",
        )

    async def to_display_rate(
        self,
        internal_rate: Decimal,
        from_currency: str,
        to_currency: str,
    ) -> Decimal:
        """정방향 환율 → 표시용 환율 (0 이하는 0)"""
        if internal_rate <= 0:
            return Decimal("0")

        mode = await self.get_display_mode(from_currency, to_currency)
        if mode == FxRateDisplayMode.INVERTED:
            return Decimal("1") / internal_rate
        return internal_rate

    async def to_internal_rate(
        self,
        display_rate: Decimal,
        from_currency: str,
        to_currency: str,
    ) -> Decimal:
        """표시용 환율 → 정방향 환율

        Raises:
            ValidationError: 0 이하의 환율
        """
        if display_rate <= 0:
            raise ValidationError("환율은 0보다 커야 합니다")

        mode = await self.get_display_mode(from_currency, to_currency)
        if mode == FxRateDisplayMode.INVERTED:
            return Decimal("1") / display_rate
        return display_rate

    @staticmethod
    def _pair(from_currency: str | None, to_currency: str | None) -> tuple[str, str] | None:
        from_code = normalize_currency_code(from_currency)
        to_code = normalize_currency_code(to_currency)
        if not from_code or not to_code:
            return None
        return from_code, to_code
