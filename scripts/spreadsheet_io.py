"""
스프레드시트 가져오기/내보내기 스크립트

사용법:
    python -m scripts.spreadsheet_io export data/operations.xlsx
    python -m scripts.spreadsheet_io import data/operations.csv
    python -m scripts.spreadsheet_io import data/operations.xlsx --settings config/settings.yaml

import는 기존 연산과 변경 이력을 모두 지우고 파일 내용으로 교체한다.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.ledger.engine import LedgerEngine
from core.ledger.schema import init_ledger_schema
from core.logging import setup_logging
from core.spreadsheet.service import SpreadsheetImportError, SpreadsheetService

logger = logging.getLogger(__name__)


async def export_operations(db: SQLiteAdapter, path: Path) -> int:
    engine = LedgerEngine(db)
    operations = await engine.get_operations()
    try:
        SpreadsheetService().export_file(path, operations)
    except (SpreadsheetImportError, OSError) as e:
        logger.error(f"내보내기 실패: {e}")
        return 1
    logger.info(f"내보내기 완료: {path} ({len(operations)}건)")
    return 0


async def import_operations(db: SQLiteAdapter, path: Path, rebuild_rates_on_delete: bool) -> int:
    try:
        operations = SpreadsheetService().import_file(path)
    except (SpreadsheetImportError, OSError) as e:
        logger.error(f"가져오기 실패: {e}")
        return 1

    engine = LedgerEngine(db, rebuild_rates_on_delete=rebuild_rates_on_delete)
    result = await engine.replace_all_operations(operations)
    if not result.ok:
        logger.error(f"가져오기 실패: {result.error} {result.reason}")
        return 1

    logger.info(f"가져오기 완료: {path} ({len(operations)}건)")
    return 0


async def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="연산 로그 xlsx/csv 가져오기/내보내기")
    parser.add_argument("command", choices=["export", "import"], help="실행할 작업")
    parser.add_argument("path", type=Path, help="xlsx 또는 csv 파일 경로")
    parser.add_argument("--settings", type=Path, default=None, help="settings.yaml 경로")
    args = parser.parse_args(argv)

    settings = get_settings(args.settings)
    setup_logging("cli", console_level=settings.log_level, log_dir=settings.log_dir)

    async with SQLiteAdapter(settings.db_path) as db:
        await init_ledger_schema(db, settings.default_currencies)

        if args.command == "export":
            return await export_operations(db, args.path)
        return await import_operations(db, args.path, settings.rebuild_rates_on_delete)


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
