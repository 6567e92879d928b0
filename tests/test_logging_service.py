import logging
from datetime import date

import pytest

from dentalceph.services.config_service import ConfigService
from dentalceph.services.logging_service import (
    configure_from,
    get_logger,
    log_file_path,
    parse_level,
    setup_logging,
)


def own_handlers():
    return [h for h in logging.getLogger().handlers if getattr(h, "_dentalceph_handler", False)]


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in own_handlers():
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)


def test_parse_level():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level(" WARNING ") == logging.WARNING
    assert parse_level(logging.ERROR) == logging.ERROR
    assert parse_level("chatty") == logging.INFO


def test_log_file_is_named_by_day(tmp_path):
    assert log_file_path(tmp_path, date(2024, 3, 9)) == tmp_path / "dentalceph_20240309.log"


def test_console_only_by_default():
    assert setup_logging() is None
    handlers = own_handlers()
    assert len(handlers) == 1
    assert not isinstance(handlers[0], logging.FileHandler)


def test_file_logging_writes_messages(tmp_path):
    log_path = setup_logging(logging.DEBUG, log_to_file=True, log_dir=tmp_path / "logs")

    get_logger("dentalceph.test").info("Image loaded: 200x200")

    assert log_path == log_file_path(tmp_path / "logs")
    assert "Image loaded: 200x200" in log_path.read_text(encoding="utf-8")


def test_reconfigure_replaces_previous_handlers(tmp_path):
    setup_logging(log_to_file=True, log_dir=tmp_path)
    setup_logging(logging.WARNING)

    handlers = own_handlers()
    assert len(handlers) == 1
    assert handlers[0].level == logging.WARNING
    assert logging.getLogger().level == logging.WARNING


def test_configure_from_config_section(tmp_path):
    config = ConfigService(tmp_path / "config.json")
    assert config.log_level == "INFO"
    config.set("logging", {"level": "debug", "to_file": True, "folder": str(tmp_path / "logs")})

    log_path = configure_from(config)

    assert log_path.parent == tmp_path / "logs"
    assert logging.getLogger().level == logging.DEBUG
    assert any(isinstance(h, logging.FileHandler) for h in own_handlers())
