import hmac
from typing import Optional

from fileshare.models.server_config import ServerConfig


class Authenticator:
    def __init__(self, server_config: ServerConfig):
        self.require_auth = server_config.require_auth
        self._expected = (server_config.expected_auth_header or "").encode("utf-8")

    def check(self, provided_header: Optional[str]) -> bool:
        """Check the Authorization header against the configured credential."""
        if not self.require_auth:
            return True
        if provided_header is None:
            return False
        return hmac.compare_digest(provided_header.encode("utf-8"), self._expected)
