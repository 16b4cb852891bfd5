from pathlib import Path
from urllib.parse import quote

import aiofiles
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from fileshare import config
from fileshare.logger_config import setup_logger
from fileshare.services import mime_resolver, path_guard
from fileshare.services.path_guard import DenyReason

logger = setup_logger()


def resolve_or_raise(root: Path, requested: str) -> Path:
    """Resolve a client path below root, raising 400 or 403 on denial."""
    resolved = path_guard.resolve(root, requested)
    if resolved.allowed:
        return resolved.path
    if resolved.reason == DenyReason.MALFORMED:
        logger.info(f"Malformed path rejected: {requested!r}")
        raise HTTPException(status_code=400, detail="Invalid path")
    logger.warning(f"Path outside root {root} rejected: {requested!r}")
    raise HTTPException(status_code=403, detail="Forbidden: Access denied.")


def content_disposition(filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


async def file_response(path: Path, attach_binary: bool) -> StreamingResponse:
    """Stream a file with a content type derived from its extension.

    The file is opened before the response starts, so an unreadable file
    still produces a 500 instead of a truncated 200.
    """
    mime, _ = mime_resolver.classify(path.name)
    headers = {}
    if attach_binary and mime_resolver.is_likely_binary(mime):
        headers["content-disposition"] = content_disposition(path.name)

    try:
        f = await aiofiles.open(path, "rb")
    except OSError as e:
        logger.error(f"Error opening {path}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error reading file")

    async def file_iterator():
        try:
            while chunk := await f.read(config.CHUNK_SIZE):
                yield chunk
        finally:
            await f.close()

    return StreamingResponse(
        file_iterator(),
        media_type=mime_resolver.content_type_header(mime),
        headers=headers,
    )


fallback_router = APIRouter()


@fallback_router.post("/{path:path}")
async def post_not_found(path: str):
    raise HTTPException(status_code=404, detail="Not found")
