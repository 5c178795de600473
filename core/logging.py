"""
로깅 설정

Web 서버와 스프레드시트 CLI가 같은 형식으로 로그를 남긴다.
파일 로그는 자정마다 교체 (web.log.2026-02-21 형식으로 보관).

    from core.logging import setup_logging
    setup_logging("web", console_level=settings.log_level, log_dir=settings.log_dir)
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7

# 프로세스별 기본 로그 디렉토리
PROCESS_LOG_DIRS: dict[str, Path] = {
    "web": Paths.WEB_LOGS_DIR,
    "cli": Paths.CLI_LOGS_DIR,
}

# WARNING 미만은 숨길 라이브러리 로거
NOISY_LOGGERS = (
    "aiosqlite",  # 쿼리마다 executing/completed
    "httpcore",
    "httpx",
    "asyncio",
    "multipart",  # 업로드 파싱
)


def setup_logging(
    process_name: str,
    console_level: int | str = logging.INFO,
    file_level: int | str = logging.INFO,
    log_dir: Path | None = None,
) -> Path:
    """루트 로거에 콘솔/파일 핸들러 설정

    다시 호출하면 기존 핸들러를 교체한다 (TestClient가 lifespan을 여러 번 돌림).

    Args:
        process_name: "web" 또는 "cli" (로그 파일 이름으로도 사용)
        console_level: 콘솔 레벨 ("DEBUG" 같은 이름도 허용)
        file_level: 파일 레벨
        log_dir: 로그 디렉토리 (None이면 프로세스별 기본 위치)

    Returns:
        로그 파일 경로
    """
    if log_dir is None:
        log_dir = PROCESS_LOG_DIRS.get(process_name, Paths.LOGS_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{process_name}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # 필터링은 핸들러에서

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        # 이전 호출이 연 로그 파일만 닫는다
        if isinstance(handler, TimedRotatingFileHandler):
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        f"로깅 초기화: {process_name} (콘솔 {logging.getLevelName(console_handler.level)}, "
        f"파일 {log_file})"
    )
    return log_file
