from pathlib import PurePath
from typing import Tuple

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".md": "text/markdown",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".tar": "application/x-tar",
    ".wasm": "application/wasm",
}

# application/* types that are text and get a charset
TEXT_APPLICATION_TYPES = {
    "application/javascript",
    "application/json",
    "application/xml",
}

# application/* types a browser can render inline
INLINE_APPLICATION_TYPES = TEXT_APPLICATION_TYPES | {"application/pdf"}


def mime_type(filename: str) -> str:
    """Look up the content type by lowercase file extension."""
    suffix = PurePath(filename).suffix.lower()
    return MIME_TYPES.get(suffix, DEFAULT_MIME_TYPE)


def is_text_like(mime: str) -> bool:
    return mime.startswith("text/") or mime in TEXT_APPLICATION_TYPES


def is_likely_binary(mime: str) -> bool:
    """Whether a download of this type should be forced to an attachment."""
    if mime == DEFAULT_MIME_TYPE:
        return True
    return mime.startswith("application/") and mime not in INLINE_APPLICATION_TYPES


def classify(filename: str) -> Tuple[str, bool]:
    mime = mime_type(filename)
    return mime, is_text_like(mime)


def content_type_header(mime: str) -> str:
    """Content-Type header value, with a UTF-8 charset for text-like types."""
    if is_text_like(mime):
        return f"{mime}; charset=utf-8"
    return mime
