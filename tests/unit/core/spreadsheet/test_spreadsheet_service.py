"""
SpreadsheetService 테스트

xlsx/csv 내보내기, 가져오기 규칙(대소문자 무시 헤더, 소수점 쉼표, 러시아어 유형 표기,
USD 환산 추정, 전체 거부) 확인
"""

import io
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from core.ledger.models import Operation
from core.spreadsheet.service import (
    EXPORT_COLUMNS,
    SHEET_NAME,
    SpreadsheetImportError,
    SpreadsheetService,
    detect_format,
)
from core.types import OperationType


@pytest.fixture
def service() -> SpreadsheetService:
    return SpreadsheetService()


@pytest.fixture
def operations() -> list[Operation]:
    """Income → Exchange → Expense"""
    return [
        Operation(
            id=1,
            date=datetime(2026, 1, 1),
            type=OperationType.INCOME,
            source_currency="EUR",
            source_amount=Decimal("200"),
            target_currency="EUR",
            target_amount=Decimal("200"),
            rate=Decimal("1.1"),
            commission=None,
            usd_equivalent=Decimal("220"),
        ),
        Operation(
            id=2,
            date=datetime(2026, 1, 5),
            type=OperationType.EXCHANGE,
            source_currency="EUR",
            source_amount=Decimal("100"),
            target_currency="USD",
            target_amount=Decimal("108"),
            rate=Decimal("1.08"),
            commission=Decimal("2"),
            usd_equivalent=Decimal("108"),
        ),
        Operation(
            id=3,
            date=datetime(2026, 1, 7),
            type=OperationType.EXPENSE,
            source_currency="USD",
            source_amount=Decimal("12.5"),
            target_currency="USD",
            target_amount=Decimal("12.5"),
            rate=Decimal("1"),
            commission=None,
            usd_equivalent=Decimal("12.5"),
            expense_category="Food",
            expense_comment="lunch",
        ),
    ]


def _csv(text: str) -> bytes:
    return text.encode("utf-8")


class TestDetectFormat:
    """detect_format 테스트"""

    def test_supported(self) -> None:
        assert detect_format("ops.xlsx") == "xlsx"
        assert detect_format(Path("data/ops.CSV")) == "csv"

    def test_unsupported(self) -> None:
        with pytest.raises(SpreadsheetImportError):
            detect_format("ops.ods")


class TestExport:
    """내보내기 테스트"""

    def test_xlsx_sheet_and_columns(self, service: SpreadsheetService, operations) -> None:
        data = service.export_operations(operations, "xlsx")

        df = pd.read_excel(io.BytesIO(data), sheet_name=SHEET_NAME, engine="openpyxl")

        assert list(df.columns) == list(EXPORT_COLUMNS)
        assert len(df) == 3
        assert df.loc[1, "OperationType"] == "Exchange"
        assert df.loc[1, "Rate"] == pytest.approx(1.08)

    def test_csv_keeps_exact_decimals(self, service: SpreadsheetService, operations) -> None:
        """csv는 Decimal 문자열 그대로"""
        text = service.export_operations(operations, "csv").decode("utf-8")
        lines = text.strip().splitlines()

        assert lines[0] == ",".join(EXPORT_COLUMNS)
        assert lines[2].startswith("2,2026-01-05T00:00:00,Exchange,EUR,100,USD,108,1.08,2,108")

    def test_empty_list(self, service: SpreadsheetService) -> None:
        text = service.export_operations([], "csv").decode("utf-8")
        assert text.strip() == ",".join(EXPORT_COLUMNS)

    def test_unsupported_format(self, service: SpreadsheetService, operations) -> None:
        with pytest.raises(ValueError):
            service.export_operations(operations, "ods")

    def test_export_file(self, service: SpreadsheetService, operations, tmp_path: Path) -> None:
        path = service.export_file(tmp_path / "out" / "ops.csv", operations)

        assert path.exists()
        assert service.import_file(path) == operations


class TestImportRoundTrip:
    """내보낸 파일을 다시 가져오기"""

    def test_csv(self, service: SpreadsheetService, operations) -> None:
        data = service.export_operations(operations, "csv")
        assert service.import_operations(data, "csv") == operations

    def test_xlsx(self, service: SpreadsheetService, operations) -> None:
        data = service.export_operations(operations, "xlsx")

        imported = service.import_operations(data, "xlsx")

        assert [op.id for op in imported] == [1, 2, 3]
        exchange = imported[1]
        assert exchange.date == datetime(2026, 1, 5)
        assert exchange.type == OperationType.EXCHANGE
        assert exchange.source_amount == Decimal("100")
        assert exchange.target_amount == Decimal("108")
        assert exchange.rate == Decimal("1.08")
        assert exchange.commission == Decimal("2")
        assert imported[0].commission is None
        assert imported[2].expense_category == "Food"
        assert imported[2].expense_comment == "lunch"


class TestImportRules:
    """가져오기 규칙"""

    def test_minimal_columns_case_insensitive(self, service: SpreadsheetService) -> None:
        """필수 컬럼만, 소문자 헤더"""
        data = _csv(
            "date,operationtype,fromcurrency,fromamount,tocurrency,toamount,rate\n"
            "2026-01-01,Income,usd,100,USD,100,1\n"
        )

        [op] = service.import_operations(data, "csv")

        assert op.id == 0
        assert op.source_currency == "USD"
        assert op.usd_equivalent == Decimal("100")
        assert op.commission is None
        assert op.expense_category is None

    def test_russian_labels_and_decimal_comma(self, service: SpreadsheetService) -> None:
        data = _csv(
            "Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount,Rate\n"
            "2026-01-01,Пополнение,USD,100,USD,100,1\n"
            '2026-01-02,Обмен,USD,"50,5",EUR,"46,46","0,92"\n'
            "2026-01-03,Расход,EUR,10,EUR,10,\"1,1\"\n"
        )

        ops = service.import_operations(data, "csv")

        assert [op.type for op in ops] == [
            OperationType.INCOME,
            OperationType.EXCHANGE,
            OperationType.EXPENSE,
        ]
        assert ops[1].source_amount == Decimal("50.5")
        assert ops[1].rate == Decimal("0.92")
        # USD 원천 환전은 원천 금액이 USD 환산액
        assert ops[1].usd_equivalent == Decimal("50.5")
        # 비 USD 지출은 금액 * 환율
        assert ops[2].usd_equivalent == Decimal("11.0")

    def test_exchange_to_usd_uses_target_amount(self, service: SpreadsheetService) -> None:
        data = _csv(
            "Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount,Rate\n"
            "2026-01-02,Exchange,EUR,100,USD,108,1.08\n"
        )

        [op] = service.import_operations(data, "csv")

        assert op.usd_equivalent == Decimal("108")

    def test_exchange_without_usd_needs_column(self, service: SpreadsheetService) -> None:
        """USD가 없는 환전은 UsdEquivalent 없이 계산 불가 → 전체 거부"""
        data = _csv(
            "Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount,Rate\n"
            "2026-01-01,Income,USD,100,USD,100,1\n"
            "2026-01-02,Exchange,EUR,10,RUB,1000,100\n"
        )

        with pytest.raises(SpreadsheetImportError, match="UsdEquivalent"):
            service.import_operations(data, "csv")

    def test_explicit_usd_equivalent(self, service: SpreadsheetService) -> None:
        data = _csv(
            "Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount,Rate,UsdEquivalent\n"
            "2026-01-02,Exchange,EUR,10,RUB,1000,100,10.8\n"
        )

        [op] = service.import_operations(data, "csv")

        assert op.usd_equivalent == Decimal("10.8")

    def test_rows_without_date_skipped(self, service: SpreadsheetService) -> None:
        data = _csv(
            "Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount,Rate\n"
            "2026-01-01,Income,USD,100,USD,100,1\n"
            ",,,,,,\n"
            ",Income,USD,5,USD,5,1\n"
        )

        assert len(service.import_operations(data, "csv")) == 1

    def test_missing_required_column(self, service: SpreadsheetService) -> None:
        data = _csv(
            "Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount\n"
            "2026-01-01,Income,USD,100,USD,100\n"
        )

        with pytest.raises(SpreadsheetImportError, match='"Rate"'):
            service.import_operations(data, "csv")

    def test_empty_file(self, service: SpreadsheetService) -> None:
        with pytest.raises(SpreadsheetImportError, match="빈 파일"):
            service.import_operations(b"", "csv")

    def test_header_only(self, service: SpreadsheetService) -> None:
        data = _csv("Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount,Rate\n")

        with pytest.raises(SpreadsheetImportError, match="연산이 없습니다"):
            service.import_operations(data, "csv")

    def test_unknown_operation_type(self, service: SpreadsheetService) -> None:
        data = _csv(
            "Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount,Rate\n"
            "2026-01-01,Transfer,USD,100,USD,100,1\n"
        )

        with pytest.raises(SpreadsheetImportError, match="2행"):
            service.import_operations(data, "csv")

    def test_bad_amount_rejects_whole_file(self, service: SpreadsheetService) -> None:
        data = _csv(
            "Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount,Rate\n"
            "2026-01-01,Income,USD,100,USD,100,1\n"
            "2026-01-02,Income,USD,abc,USD,100,1\n"
        )

        with pytest.raises(SpreadsheetImportError, match="3행 FromAmount"):
            service.import_operations(data, "csv")

    def test_offset_dates_normalized_to_utc(self, service: SpreadsheetService) -> None:
        """시간대가 있는 날짜는 naive UTC로, naive 날짜는 그대로"""
        data = _csv(
            "Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount,Rate\n"
            "2026-01-05T03:00:00+03:00,Income,USD,100,USD,100,1\n"
            "2026-01-05T00:00:00Z,Income,USD,1,USD,1,1\n"
            "2026-01-06,Income,USD,5,USD,5,1\n"
        )

        ops = service.import_operations(data, "csv")

        assert [op.date for op in ops] == [
            datetime(2026, 1, 5),
            datetime(2026, 1, 5),
            datetime(2026, 1, 6),
        ]
        assert all(op.date.tzinfo is None for op in ops)

    def test_bad_date(self, service: SpreadsheetService) -> None:
        data = _csv(
            "Date,OperationType,FromCurrency,FromAmount,ToCurrency,ToAmount,Rate\n"
            "not-a-date,Income,USD,100,USD,100,1\n"
        )

        with pytest.raises(SpreadsheetImportError, match="날짜"):
            service.import_operations(data, "csv")

    def test_corrupt_xlsx(self, service: SpreadsheetService) -> None:
        with pytest.raises(SpreadsheetImportError):
            service.import_operations(b"not a zip archive", "xlsx")
