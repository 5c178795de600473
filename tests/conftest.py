"""
pytest 공통 fixture 정의

임시 디렉토리, 임시 settings.yaml, 스키마가 초기화된 장부 DB
"""

import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.ledger.engine import LedgerEngine
from core.ledger.schema import init_ledger_schema
from tests.utils.helpers import make_draft


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    settings_content = f"""# 테스트용 settings.yaml
database:
  path: {(temp_dir / "ledger.db").as_posix()}

ledger:
  default_currencies:
    - usd
    - EUR
    - RUB
  rebuild_rates_on_delete: false

web:
  host: 0.0.0.0
  port: 8123

logging:
  level: debug
  dir: {(temp_dir / "logs").as_posix()}
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def reset_settings():
    """Settings 싱글턴 초기화 (테스트 전후)"""
    Settings.reset()
    yield
    Settings.reset()


@pytest_asyncio.fixture
async def ledger_db(tmp_path: Path) -> SQLiteAdapter:
    """장부 스키마 + 기본 통화(USD, EUR, RUB)가 준비된 임시 DB"""
    adapter = SQLiteAdapter(tmp_path / "test_ledger.db")
    await adapter.connect()
    await init_ledger_schema(adapter, ["USD", "EUR", "RUB"])

    yield adapter

    await adapter.close()


@pytest.fixture
def engine(ledger_db: SQLiteAdapter) -> LedgerEngine:
    """LedgerEngine 인스턴스"""
    return LedgerEngine(ledger_db)


@pytest.fixture
def draft_factory():
    """make_draft 헬퍼를 fixture로 제공"""
    return make_draft
