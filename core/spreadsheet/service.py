"""
스프레드시트 가져오기/내보내기

연산 로그 ↔ xlsx/csv 변환. 가져온 목록은 LedgerEngine.replace_all_operations()로 넘긴다.

컬럼:
    Id, Date, OperationType, FromCurrency, FromAmount, ToCurrency, ToAmount,
    Rate, Fee, UsdEquivalent, ExpenseCategory, Comment

가져오기 규칙:
- 필수 컬럼: Date, OperationType, FromCurrency, FromAmount, ToCurrency, ToAmount, Rate
- 헤더는 대소문자 무시
- Date가 빈 행은 건너뜀
- 소수점 쉼표(1,08) 허용
- OperationType은 영문 이름과 러시아어 표기(Пополнение/Расход/Обмен) 모두 허용
- UsdEquivalent가 없으면 계산 가능한 경우에만 계산, 아니면 오류
- 한 행이라도 해석에 실패하면 파일 전체를 거부
"""

import io
import logging
import zipfile
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable

import pandas as pd

from core.constants import Defaults
from core.ledger.models import Operation
from core.types import OperationType, normalize_currency_code, to_naive_utc

logger = logging.getLogger(__name__)

SHEET_NAME = "Transactions"

EXPORT_COLUMNS: tuple[str, ...] = (
    "Id",
    "Date",
    "OperationType",
    "FromCurrency",
    "FromAmount",
    "ToCurrency",
    "ToAmount",
    "Rate",
    "Fee",
    "UsdEquivalent",
    "ExpenseCategory",
    "Comment",
)

REQUIRED_COLUMNS: tuple[str, ...] = (
    "Date",
    "OperationType",
    "FromCurrency",
    "FromAmount",
    "ToCurrency",
    "ToAmount",
    "Rate",
)

# 표시 이름 → OperationType
OPERATION_TYPE_LABELS: dict[str, OperationType] = {
    "Income": OperationType.INCOME,
    "Пополнение": OperationType.INCOME,
    "Expense": OperationType.EXPENSE,
    "Расход": OperationType.EXPENSE,
    "Exchange": OperationType.EXCHANGE,
    "Обмен": OperationType.EXCHANGE,
}

SUPPORTED_FORMATS: tuple[str, ...] = ("xlsx", "csv")


class SpreadsheetImportError(Exception):
    """스프레드시트 해석 실패 (파일 전체 거부)"""

    pass


def detect_format(filename: str | Path) -> str:
    """파일 확장자로 형식 판별

    Raises:
        SpreadsheetImportError: 지원하지 않는 확장자
    """
    suffix = Path(filename).suffix.lower().lstrip(".")
    if suffix not in SUPPORTED_FORMATS:
        raise SpreadsheetImportError(f"지원하지 않는 파일 형식입니다: .{suffix}")
    return suffix


class SpreadsheetService:
    """연산 로그 스프레드시트 변환

    사용 예시:
    ```python
    service = SpreadsheetService()

    # 내보내기
    data = service.export_operations(await engine.get_operations(), "xlsx")

    # 가져오기 (전체 교체)
    operations = service.import_operations(data, "xlsx")
    await engine.replace_all_operations(operations)
    ```
    """

    # =========================================================================
    # 내보내기
    # =========================================================================

    def export_operations(
        self,
        operations: Iterable[Operation],
        file_format: str = "xlsx",
    ) -> bytes:
        """연산 목록을 xlsx/csv 바이트로 변환"""
        file_format = file_format.lower()
        if file_format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported format: {file_format}")

        as_number = file_format == "xlsx"
        records = [self._to_record(op, as_number) for op in operations]
        df = pd.DataFrame(records, columns=list(EXPORT_COLUMNS))

        buffer = io.BytesIO()
        if file_format == "xlsx":
            df.to_excel(buffer, sheet_name=SHEET_NAME, index=False, engine="openpyxl")
        else:
            df.to_csv(buffer, index=False, encoding="utf-8")

        logger.info(f"스프레드시트 내보내기: {len(records)}건 ({file_format})")
        return buffer.getvalue()

    def export_file(self, path: Path | str, operations: Iterable[Operation]) -> Path:
        """파일로 내보내기 (확장자로 형식 결정)"""
        path = Path(path)
        file_format = detect_format(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.export_operations(operations, file_format))
        return path

    @staticmethod
    def _to_record(op: Operation, as_number: bool) -> dict[str, Any]:
        # xlsx는 숫자 셀, csv는 Decimal 문자열 그대로
        def num(value: Decimal | None) -> Any:
            if value is None:
                return None
            return float(value) if as_number else str(value)

        return {
            "Id": op.id,
            "Date": op.date if as_number else op.date.isoformat(),
            "OperationType": op.type.value,
            "FromCurrency": op.source_currency,
            "FromAmount": num(op.source_amount),
            "ToCurrency": op.target_currency,
            "ToAmount": num(op.target_amount),
            "Rate": num(op.rate),
            "Fee": num(op.commission),
            "UsdEquivalent": num(op.usd_equivalent),
            "ExpenseCategory": op.expense_category,
            "Comment": op.expense_comment,
        }

    # =========================================================================
    # 가져오기
    # =========================================================================

    def import_operations(self, data: bytes, file_format: str = "xlsx") -> list[Operation]:
        """xlsx/csv 바이트를 연산 목록으로 변환

        Raises:
            SpreadsheetImportError: 빈 파일, 필수 컬럼 누락, 값 해석 실패
        """
        df = self._read_frame(data, file_format.lower())
        columns = self._map_columns(df)

        operations: list[Operation] = []
        # 헤더가 1행이므로 데이터는 2행부터
        for row_number, record in enumerate(df.to_dict(orient="records"), start=2):
            # 없는 선택 컬럼은 None
            row = {name: record[columns[name]] if name in columns else None for name in EXPORT_COLUMNS}
            if _is_empty(row["Date"]):
                continue
            operations.append(self._parse_row(row, row_number))

        if not operations:
            raise SpreadsheetImportError("파일에 연산이 없습니다")

        logger.info(f"스프레드시트 가져오기: {len(operations)}건 ({file_format})")
        return operations

    def import_file(self, path: Path | str) -> list[Operation]:
        """파일에서 가져오기 (확장자로 형식 결정)"""
        path = Path(path)
        file_format = detect_format(path)
        return self.import_operations(path.read_bytes(), file_format)

    @staticmethod
    def _read_frame(data: bytes, file_format: str) -> pd.DataFrame:
        if not data:
            raise SpreadsheetImportError("빈 파일입니다")

        try:
            if file_format == "xlsx":
                return pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=object, engine="openpyxl")
            if file_format == "csv":
                return pd.read_csv(
                    io.BytesIO(data),
                    dtype=str,
                    keep_default_na=False,
                    encoding="utf-8-sig",
                )
        except pd.errors.EmptyDataError as e:
            raise SpreadsheetImportError("빈 파일입니다") from e
        except (ValueError, OSError, KeyError, zipfile.BadZipFile) as e:
            raise SpreadsheetImportError(f"파일을 읽을 수 없습니다: {e}") from e

        raise SpreadsheetImportError(f"지원하지 않는 파일 형식입니다: {file_format}")

    @staticmethod
    def _map_columns(df: pd.DataFrame) -> dict[str, Any]:
        """알려진 컬럼 이름 → DataFrame 컬럼 (대소문자 무시)"""
        known = {name.lower(): name for name in EXPORT_COLUMNS}
        columns: dict[str, Any] = {}
        for column in df.columns:
            header = str(column).strip()
            name = known.get(header.lower())
            if name is not None and name not in columns:
                columns[name] = column

        for required in REQUIRED_COLUMNS:
            if required not in columns:
                raise SpreadsheetImportError(f'필수 컬럼이 없습니다: "{required}"')

        return columns

    def _parse_row(self, row: dict[str, Any], row_number: int) -> Operation:
        op_type = _parse_operation_type(row["OperationType"], row_number)
        source_currency = _parse_currency(row["FromCurrency"], "FromCurrency", row_number)
        target_currency = _parse_currency(row["ToCurrency"], "ToCurrency", row_number)
        source_amount = _parse_decimal(row["FromAmount"], "FromAmount", row_number)
        target_amount = _parse_decimal(row["ToAmount"], "ToAmount", row_number)
        rate = _parse_decimal(row["Rate"], "Rate", row_number)

        operation_id = 0
        if not _is_empty(row["Id"]):
            operation_id = int(_parse_decimal(row["Id"], "Id", row_number).to_integral_value())

        commission = None
        if not _is_empty(row["Fee"]):
            commission = _parse_decimal(row["Fee"], "Fee", row_number)

        if not _is_empty(row["UsdEquivalent"]):
            usd_eq = _parse_decimal(row["UsdEquivalent"], "UsdEquivalent", row_number)
        else:
            usd_eq = _estimate_usd_equivalent(
                op_type, source_currency, source_amount, target_currency, target_amount, rate
            )
            if usd_eq is None:
                raise SpreadsheetImportError(
                    f"{row_number}행의 USD 환산액을 계산할 수 없습니다. UsdEquivalent 컬럼을 추가하세요."
                )

        return Operation(
            id=operation_id,
            date=_parse_date(row["Date"], row_number),
            type=op_type,
            source_currency=source_currency,
            source_amount=source_amount,
            target_currency=target_currency,
            target_amount=target_amount,
            rate=rate,
            commission=commission,
            usd_equivalent=usd_eq,
            expense_category=_optional_text(row["ExpenseCategory"]),
            expense_comment=_optional_text(row["Comment"]),
        )


# =========================================================================
# 셀 값 해석
# =========================================================================

def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _optional_text(value: Any) -> str | None:
    if _is_empty(value):
        return None
    return str(value).strip()


def _parse_decimal(value: Any, column: str, row_number: int) -> Decimal:
    if _is_empty(value) or isinstance(value, bool):
        raise SpreadsheetImportError(f"{row_number}행 {column} 값이 올바르지 않습니다")

    # float는 str을 거쳐야 이진 오차가 들어오지 않음
    text = str(value).strip().replace("\u00a0", "").replace(" ", "").replace(",", ".")
    try:
        number = Decimal(text)
    except InvalidOperation as e:
        raise SpreadsheetImportError(f"{row_number}행 {column} 값이 올바르지 않습니다: {value}") from e

    if not number.is_finite():
        raise SpreadsheetImportError(f"{row_number}행 {column} 값이 올바르지 않습니다: {value}")
    return number


def _parse_date(value: Any, row_number: int) -> datetime:
    """셀 값 → naive UTC 일시 ("2026-01-05T03:00:00+03:00"은 2026-01-05 00:00)"""
    if isinstance(value, pd.Timestamp):
        return to_naive_utc(value.to_pydatetime())
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    try:
        parsed = pd.to_datetime(str(value).strip())
    except (ValueError, TypeError, OverflowError) as e:
        raise SpreadsheetImportError(f"{row_number}행 날짜가 올바르지 않습니다: {value}") from e

    if pd.isna(parsed):
        raise SpreadsheetImportError(f"{row_number}행 날짜가 올바르지 않습니다: {value}")
    return to_naive_utc(parsed.to_pydatetime())


def _parse_operation_type(value: Any, row_number: int) -> OperationType:
    label = "" if _is_empty(value) else str(value).strip()
    op_type = OPERATION_TYPE_LABELS.get(label)
    if op_type is None:
        raise SpreadsheetImportError(f"{row_number}행 알 수 없는 연산 유형: {value}")
    return op_type


def _parse_currency(value: Any, column: str, row_number: int) -> str:
    code = "" if _is_empty(value) else normalize_currency_code(str(value))
    if not code:
        raise SpreadsheetImportError(f"{row_number}행 {column} 통화가 비어 있습니다")
    return code


def _estimate_usd_equivalent(
    op_type: OperationType,
    source_currency: str,
    source_amount: Decimal,
    target_currency: str,
    target_amount: Decimal,
    rate: Decimal,
) -> Decimal | None:
    """UsdEquivalent 컬럼이 비었을 때의 추정값 (USD가 없는 환전은 None)"""
    usd = Defaults.BASE_CURRENCY

    if op_type in (OperationType.INCOME, OperationType.EXPENSE):
        return source_amount if source_currency == usd else source_amount * rate

    if target_currency == usd:
        return target_amount
    if source_currency == usd:
        return source_amount
    return None
