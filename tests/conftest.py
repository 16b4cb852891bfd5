import logging

import pytest
from fastapi.testclient import TestClient

from fileshare.main import create_app
from fileshare.models.server_config import ServerConfig


@pytest.fixture
def share_root(tmp_path):
    """A browse mode root with a few files and a subdirectory."""
    root = tmp_path / "share"
    root.mkdir()
    (root / "hello.txt").write_text("Hello, world!")
    (root / "style.css").write_text("body { color: red; }")
    (root / "photo.bin").write_bytes(b"\x00\x01\x02\x03")
    (root / "sub").mkdir()
    (root / "sub" / "inner.txt").write_text("inner")
    return root


@pytest.fixture
def web_root(tmp_path):
    """A static mode web root."""
    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_text("<h1>home</h1>")
    (root / "css").mkdir()
    (root / "css" / "site.css").write_text("h1 { margin: 0; }")
    (root / "app.bin").write_bytes(b"\xde\xad\xbe\xef")
    (root / "docs").mkdir()
    (root / "docs" / "guide").mkdir()
    (root / "docs" / "guide" / "index.html").write_text("<h1>guide</h1>")
    return root


@pytest.fixture
def browse_client(share_root):
    server_config = ServerConfig.build(working_dir=share_root)
    return TestClient(create_app(server_config))


@pytest.fixture
def static_client(web_root):
    server_config = ServerConfig.build(index_dir=str(web_root))
    return TestClient(create_app(server_config))


@pytest.fixture
def auth_client(share_root):
    server_config = ServerConfig.build(working_dir=share_root, password="secret")
    return TestClient(create_app(server_config))


@pytest.fixture
def log_records(caplog):
    """Capture records of the fileshare logger, which does not propagate."""
    logger = logging.getLogger("fileshare")
    logger.propagate = True
    caplog.set_level(logging.DEBUG, logger="fileshare")
    yield caplog
    logger.propagate = False
