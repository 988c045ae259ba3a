import logging
import os

from shazam_sync.utils.log import setup_logger, default_log_path


def close(logger):
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_default_log_path_creates_logs_dir(tmp_path):
    logs_dir = tmp_path / "logs"
    path = default_log_path(prefix="web", logs_dir=str(logs_dir))
    assert logs_dir.is_dir()
    assert os.path.dirname(path) == str(logs_dir)
    assert os.path.basename(path).startswith("web_")
    assert path.endswith(".log")


def test_setup_logger_writes_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    logger = setup_logger(name="shazam_sync.test_file", prefix="cli")
    try:
        logger.info("hello")
        files = list((tmp_path / "logs").glob("cli_*.log"))
        assert len(files) == 1
        logger.handlers[-1].flush()
        assert "hello" in files[0].read_text(encoding="utf-8")
    finally:
        close(logger)


def test_setup_logger_console_only_and_idempotent(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    logger = setup_logger(name="shazam_sync.test_console", log_file=False)
    try:
        assert [type(h) for h in logger.handlers] == [logging.StreamHandler]
        assert setup_logger(name="shazam_sync.test_console", log_file=False) is logger
        assert len(logger.handlers) == 1
        assert not (tmp_path / "logs").exists()
    finally:
        close(logger)
