"""
스프레드시트 모듈

연산 로그 xlsx/csv 가져오기/내보내기
"""

from core.spreadsheet.service import (
    EXPORT_COLUMNS,
    REQUIRED_COLUMNS,
    SpreadsheetImportError,
    SpreadsheetService,
    detect_format,
)

__all__ = [
    "SpreadsheetService",
    "SpreadsheetImportError",
    "detect_format",
    "EXPORT_COLUMNS",
    "REQUIRED_COLUMNS",
]
