"""
Spreadsheet 라우트

연산 로그 xlsx/csv 내보내기, 가져오기(전체 교체) API
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from core.ledger.engine import LedgerEngine
from core.spreadsheet.service import (
    SUPPORTED_FORMATS,
    SpreadsheetImportError,
    SpreadsheetService,
    detect_format,
)
from web.dependencies import get_engine, get_spreadsheet_service
from web.errors import raise_for_result
from web.models.responses import ImportResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/spreadsheet", tags=["Spreadsheet"])

MEDIA_TYPES: dict[str, str] = {
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "csv": "text/csv; charset=utf-8",
}


@router.get("/export")
async def export_operations(
    file_format: str = Query(default="xlsx", alias="format", description="xlsx 또는 csv"),
    engine: LedgerEngine = Depends(get_engine),
    service: SpreadsheetService = Depends(get_spreadsheet_service),
) -> Response:
    """연산 로그 내보내기"""
    file_format = file_format.lower()
    if file_format not in SUPPORTED_FORMATS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported format: {file_format}"
        )

    operations = await engine.get_operations()
    content = service.export_operations(operations, file_format)

    return Response(
        content=content,
        media_type=MEDIA_TYPES[file_format],
        headers={"Content-Disposition": f'attachment; filename="operations.{file_format}"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_operations(
    file: UploadFile = File(..., description="xlsx 또는 csv 파일"),
    engine: LedgerEngine = Depends(get_engine),
    service: SpreadsheetService = Depends(get_spreadsheet_service),
) -> ImportResponse:
    """연산 로그 가져오기

    기존 연산과 변경 이력을 모두 지우고 파일 내용으로 교체한다.
    """
    try:
        file_format = detect_format(file.filename or "")
        operations = service.import_operations(await file.read(), file_format)
    except SpreadsheetImportError as e:
        logger.warning(f"스프레드시트 가져오기 거부: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e

    result = await engine.replace_all_operations(operations)
    raise_for_result(result)

    return ImportResponse(imported=len(operations))
