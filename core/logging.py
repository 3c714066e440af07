"""
로깅 설정 유틸리티

CLI와 장기 실행 프로세스에서 사용하는 공통 로깅 설정.
- 콘솔(stderr): 기본 INFO, CLI는 WARNING (--verbose 시 DEBUG)
- 파일: INFO, 매일 자정 롤링

모듈 코드는 `extra={...}`로 세션 ID, 작업 종류 등을 넘기고
ExtraFieldsFormatter가 메시지 뒤에 key=value로 붙인다.

사용법:
    from core.logging import setup_logging
    setup_logging("drawer")
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7

# 요청/프레임 단위로 로그를 쏟아내는 라이브러리 로거
NOISY_LOGGERS = ("httpcore", "httpx", "websockets", "asyncio")

# LogRecord 기본 속성 (extra로 넘긴 필드와 구분용)
_RECORD_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class ExtraFieldsFormatter(logging.Formatter):
    """extra 필드를 메시지 뒤에 붙이는 텍스트 포매터

    Example:
        2026-10-16 09:00:00 | INFO     | drawer | 세션 개시 완료 | session_id=s-1 amount=1000
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_KEYS and not key.startswith("_")
        }
        if not extras:
            return line

        fields = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        # 예외 트레이스백이 붙은 경우 첫 줄 뒤에 삽입
        head, sep, tail = line.partition("\n")
        return f"{head} | {fields}{sep}{tail}"


def get_log_file_path(process_name: str, logs_dir: Path | None = None) -> Path:
    """logs/<process_name>/<process_name>.log"""
    base = logs_dir or Paths.LOGS_DIR
    return base / process_name / f"{process_name}.log"


def setup_logging(
    process_name: str,
    console_level: int = logging.INFO,
    file_level: int = logging.INFO,
    logs_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거 초기화

    기존 핸들러는 닫고 교체하므로 여러 번 호출해도 중복 출력되지 않는다.

    Args:
        process_name: 프로세스 이름 (로그 디렉토리/파일명)
        console_level: 콘솔 로그 레벨
        file_level: 파일 로그 레벨
        logs_dir: 로그 루트 디렉토리 (None이면 Paths.LOGS_DIR)

    Returns:
        설정된 루트 Logger
    """
    log_file = get_log_file_path(process_name, logs_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # 필터링은 핸들러에서

    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()

    formatter = ExtraFieldsFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    # CLI 출력(stdout)과 섞이지 않도록 stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        interval=1,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"  # drawer.log.2026-10-16
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.debug("로깅 초기화 완료", extra={"process_name": process_name, "log_file": str(log_file)})
    return root_logger
