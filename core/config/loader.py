"""
설정 로더

settings.yaml 로드 및 Ledger 설정 생성
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths


@dataclass(frozen=True)
class LedgerSettings:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path
    default_currencies: tuple[str, ...]
    rebuild_rates_on_delete: bool
    web_host: str
    web_port: int
    log_level: str
    log_dir: Path | None = None  # None이면 data/logs/<프로세스>


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def default_settings() -> LedgerSettings:
    """settings.yaml이 없을 때 사용하는 기본 설정"""
    return LedgerSettings(
        db_path=Paths.DB_FILE,
        default_currencies=Defaults.CURRENCIES,
        rebuild_rates_on_delete=False,
        web_host=Defaults.WEB_HOST,
        web_port=Defaults.WEB_PORT,
        log_level=Defaults.LOG_LEVEL,
    )


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise SettingsLoadError(f"settings.yaml의 '{name}' 섹션은 매핑이어야 합니다")
    return section


def _resolve_path(value: str) -> Path:
    """상대 경로는 프로젝트 루트 기준으로 해석"""
    path = Path(value)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def load_settings(path: Path | None = None) -> LedgerSettings:
    """settings.yaml 파일 로드

    파일이 없으면 기본값을 사용한다.

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerSettings 인스턴스

    Raises:
        SettingsLoadError: 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        return default_settings()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return default_settings()

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    defaults = default_settings()
    database = _section(data, "database")
    ledger = _section(data, "ledger")
    web = _section(data, "web")
    logging_config = _section(data, "logging")

    db_path = defaults.db_path
    if database.get("path"):
        db_path = _resolve_path(str(database["path"]))

    # 기본 통화 목록 검증
    currencies = ledger.get("default_currencies", list(defaults.default_currencies))
    if not isinstance(currencies, list) or not all(
        isinstance(c, str) and c.strip() for c in currencies
    ):
        raise SettingsLoadError(
            "ledger.default_currencies는 통화 코드 문자열 목록이어야 합니다"
        )

    rebuild_on_delete = ledger.get("rebuild_rates_on_delete", defaults.rebuild_rates_on_delete)
    if not isinstance(rebuild_on_delete, bool):
        raise SettingsLoadError("ledger.rebuild_rates_on_delete는 true/false여야 합니다")

    log_dir = defaults.log_dir
    if logging_config.get("dir"):
        log_dir = _resolve_path(str(logging_config["dir"]))

    try:
        web_port = int(web.get("port", defaults.web_port))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(f"web.port가 올바르지 않습니다: {web.get('port')}") from e

    return LedgerSettings(
        db_path=db_path,
        default_currencies=tuple(c.strip().upper() for c in currencies),
        rebuild_rates_on_delete=rebuild_on_delete,
        web_host=str(web.get("host", defaults.web_host)),
        web_port=web_port,
        log_level=str(logging_config.get("level", defaults.log_level)).upper(),
        log_dir=log_dir,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _settings: LedgerSettings | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._settings is None:
            self._settings = load_settings(settings_path)

    @property
    def db_path(self) -> Path:
        """DB 파일 경로"""
        assert self._settings is not None
        return self._settings.db_path

    @property
    def default_currencies(self) -> tuple[str, ...]:
        """스키마 초기화 시 등록할 통화"""
        assert self._settings is not None
        return self._settings.default_currencies

    @property
    def rebuild_rates_on_delete(self) -> bool:
        """삭제 시 환율 캐시 전체 재구축 여부"""
        assert self._settings is not None
        return self._settings.rebuild_rates_on_delete

    @property
    def web_host(self) -> str:
        assert self._settings is not None
        return self._settings.web_host

    @property
    def web_port(self) -> int:
        assert self._settings is not None
        return self._settings.web_port

    @property
    def log_level(self) -> str:
        assert self._settings is not None
        return self._settings.log_level

    @property
    def log_dir(self) -> Path | None:
        """로그 디렉토리 (None이면 기본 위치)"""
        assert self._settings is not None
        return self._settings.log_dir

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._settings = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
