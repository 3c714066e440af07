"""
로깅 설정 테스트
"""

import logging
import sys
from pathlib import Path

import pytest

from core.logging import ExtraFieldsFormatter, get_log_file_path, setup_logging


def _record(msg: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("drawer", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestExtraFieldsFormatter:
    """extra 필드 출력"""

    def test_appends_sorted_fields(self) -> None:
        formatter = ExtraFieldsFormatter("%(name)s | %(message)s")

        line = formatter.format(_record("세션 개시", session_id="s-1", amount="1000"))

        assert line == "drawer | 세션 개시 | amount=1000 session_id=s-1"

    def test_plain_record_unchanged(self) -> None:
        formatter = ExtraFieldsFormatter("%(message)s")

        assert formatter.format(_record("ok")) == "ok"

    def test_fields_before_traceback(self) -> None:
        formatter = ExtraFieldsFormatter("%(message)s")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("drawer", logging.ERROR, __file__, 1, "실패", (), sys.exc_info())
        record.operation = "open_session"

        first_line = formatter.format(record).splitlines()[0]

        assert first_line == "실패 | operation=open_session"


class TestSetupLogging:
    """setup_logging 테스트"""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in list(root.handlers):
            handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_log_file_path(self, temp_dir: Path) -> None:
        assert get_log_file_path("drawer", temp_dir) == temp_dir / "drawer" / "drawer.log"

    def test_handlers_replaced_on_repeat(self, temp_dir: Path) -> None:
        setup_logging("drawer", logs_dir=temp_dir)
        root = setup_logging("drawer", logs_dir=temp_dir)

        assert len(root.handlers) == 2
        assert (temp_dir / "drawer").is_dir()
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_file_receives_extras(self, temp_dir: Path) -> None:
        setup_logging("drawer", console_level=logging.CRITICAL, logs_dir=temp_dir)

        logging.getLogger("drawer").info("이동 등록", extra={"movement_id": "m-1"})
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = get_log_file_path("drawer", temp_dir).read_text(encoding="utf-8")
        assert "이동 등록 | movement_id=m-1" in content
