import base64
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from fileshare import config


class ConfigError(Exception):
    """Raised when the startup parameters cannot produce a usable server."""


class ServeMode(str, Enum):
    BROWSE_UPLOAD = "browse"
    STATIC_ROOT = "static"


def make_auth_header(username: str, password: str) -> str:
    """Build the exact Authorization header value a client must send."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class ServerConfig(BaseModel):
    """Runtime configuration, built once at startup and never mutated."""

    model_config = ConfigDict(frozen=True)

    mode: ServeMode
    root_path: Path
    require_auth: bool = False
    expected_auth_header: Optional[str] = None
    max_upload_bytes: int = config.MAX_UPLOAD_SIZE
    host: str = config.DEFAULT_HOST
    port: int = config.DEFAULT_HTTP_PORT
    ssl_certfile: Optional[Path] = None
    ssl_keyfile: Optional[Path] = None

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        if not 0 < v < 65536:
            raise ValueError(f"Port out of range: {v}")
        return v

    @field_validator("max_upload_bytes")
    @classmethod
    def validate_max_upload_bytes(cls, v):
        if v < 0:
            raise ValueError("Maximum upload size cannot be negative")
        return v

    @property
    def use_ssl(self) -> bool:
        return self.ssl_certfile is not None

    @property
    def scheme(self) -> str:
        return "https" if self.use_ssl else "http"

    @classmethod
    def build(
        cls,
        index_dir: Optional[str] = None,
        password: Optional[str] = None,
        port: Optional[int] = None,
        host: str = config.DEFAULT_HOST,
        use_ssl: bool = False,
        certfile: Optional[str] = None,
        keyfile: Optional[str] = None,
        max_upload_bytes: int = config.MAX_UPLOAD_SIZE,
        working_dir: Optional[Path] = None,
    ) -> "ServerConfig":
        """Validate startup parameters and derive the immutable configuration.

        Args:
            index_dir: Web root for static mode. Browse mode is used when omitted.
            password: Enables HTTP Basic authentication for user ``admin``.
            port: Listening port, defaults to 80 (443 with TLS).
            use_ssl: Serve HTTPS, requires ``certfile`` and ``keyfile``.
            working_dir: Root for browse mode, defaults to the process cwd.

        Raises:
            ConfigError: if a path is missing or the combination is invalid.
        """
        if index_dir:
            root = Path(index_dir)
            if not root.exists():
                raise ConfigError(f"Web root directory not found: {index_dir}")
            if not root.is_dir():
                raise ConfigError(f"Path provided to --index is not a directory: {index_dir}")
            mode = ServeMode.STATIC_ROOT
        else:
            root = working_dir or Path.cwd()
            mode = ServeMode.BROWSE_UPLOAD

        ssl_certfile = ssl_keyfile = None
        if use_ssl:
            if not certfile or not keyfile:
                raise ConfigError("--cert and --key are required when using --ssl.")
            if not Path(certfile).exists():
                raise ConfigError(f"Certificate file not found: {certfile}")
            if not Path(keyfile).exists():
                raise ConfigError(f"Key file not found: {keyfile}")
            ssl_certfile, ssl_keyfile = Path(certfile), Path(keyfile)

        if port is None:
            port = config.DEFAULT_HTTPS_PORT if use_ssl else config.DEFAULT_HTTP_PORT

        expected_auth_header = None
        if password is not None:
            expected_auth_header = make_auth_header(config.AUTH_USERNAME, password)

        try:
            return cls(
                mode=mode,
                root_path=root.resolve(),
                require_auth=expected_auth_header is not None,
                expected_auth_header=expected_auth_header,
                max_upload_bytes=max_upload_bytes,
                host=host,
                port=port,
                ssl_certfile=ssl_certfile,
                ssl_keyfile=ssl_keyfile,
            )
        except ValueError as e:
            raise ConfigError(str(e)) from e
