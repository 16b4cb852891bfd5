"""Configuration settings for the file sharing server."""
import os

VERSION = "2.0"

# Upload limits
MAX_UPLOAD_SIZE = 1024 * 1024 * 1024  # 1GB
CHUNK_SIZE = 8192  # 8KB

# Authentication
AUTH_USERNAME = "admin"
AUTH_REALM = "User Visible Realm"

# Static root mode
INDEX_FILE = "index.html"

# Network
DEFAULT_HOST = "0.0.0.0"
DEFAULT_HTTP_PORT = 80
DEFAULT_HTTPS_PORT = 443

# Access log: POST bodies are previewed up to this many bytes
BODY_PREVIEW_LIMIT = 1024

# Upload bodies may exceed the file size by this much for multipart framing
UPLOAD_OVERHEAD_ALLOWANCE = 64 * 1024  # 64KB

# Logging. Without FILESHARE_LOG_DIR logs go to the console only: browse mode
# serves the working directory, so no log file may default to a path under it.
LOG_DIR = os.getenv("FILESHARE_LOG_DIR")
LOG_FILE = "fileshare.log"
LOG_LEVEL = os.getenv("FILESHARE_LOG_LEVEL", "INFO")
