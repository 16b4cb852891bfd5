import logging

import pytest
from fastapi.testclient import TestClient

from fileshare import config
from fileshare.logger_config import LOGGER_NAME, setup_logger
from fileshare.main import create_app
from fileshare.models.server_config import ServerConfig


@pytest.fixture
def fresh_logger():
    """Detach the configured handlers so setup_logger runs from scratch."""
    logger = logging.getLogger(LOGGER_NAME)
    saved = logger.handlers[:]
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved


def file_handlers(logger):
    return [h for h in logger.handlers if isinstance(h, logging.FileHandler)]


def test_console_only_without_log_dir(fresh_logger, monkeypatch):
    monkeypatch.setattr(config, "LOG_DIR", None)
    logger = setup_logger()
    assert file_handlers(logger) == []
    assert len(logger.handlers) == 1


def test_log_file_in_configured_dir(fresh_logger, monkeypatch, tmp_path):
    monkeypatch.setattr(config, "LOG_DIR", str(tmp_path / "logs"))
    logger = setup_logger()
    [handler] = file_handlers(logger)
    assert handler.baseFilename == str(tmp_path / "logs" / "fileshare.log")

    logger.debug("detailed line")
    handler.flush()
    assert "detailed line" in (tmp_path / "logs" / "fileshare.log").read_text()


def test_setup_logger_is_idempotent(fresh_logger, monkeypatch):
    monkeypatch.setattr(config, "LOG_DIR", None)
    setup_logger()
    assert len(setup_logger().handlers) == 1


def test_browse_share_does_not_expose_the_log(fresh_logger, monkeypatch, share_root):
    monkeypatch.setattr(config, "LOG_DIR", None)
    monkeypatch.chdir(share_root)
    setup_logger()
    client = TestClient(create_app(ServerConfig.build()))

    client.post("/nowhere", data={"secret-form-field": "hunter2"})
    listing = client.get("/")

    assert listing.status_code == 200
    assert ">logs/<" not in listing.text
    assert not (share_root / "logs").exists()
    assert client.get("/logs/fileshare.log").status_code == 404
