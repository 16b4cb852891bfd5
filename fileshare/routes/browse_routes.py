from typing import Optional

import aiofiles.os
from fastapi import APIRouter, File, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, PlainTextResponse

from fileshare.logger_config import setup_logger
from fileshare.routes.common import file_response, resolve_or_raise
from fileshare.services import directory_lister, upload_receiver
from fileshare.services.upload_receiver import UploadError, UploadRequest

logger = setup_logger()

router = APIRouter()


@router.post("/upload")
async def upload_file(
    request: Request,
    file: Optional[UploadFile] = File(None),
    target_dir: Optional[str] = Query(None, alias="dir"),
):
    """Store an uploaded file in the root or in the ``dir`` subdirectory."""
    server_config = request.app.state.server_config

    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    # Get size from the spooled file
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)

    logger.info(f"Receiving upload {file.filename!r} ({size} bytes) into {target_dir or '/'}")

    upload = UploadRequest(
        filename=file.filename or "",
        content_type=file.content_type,
        stream=file,
        size=size,
        target_dir=target_dir,
    )
    try:
        await upload_receiver.receive(upload, server_config.root_path, server_config.max_upload_bytes)
    except UploadError as e:
        logger.info(f"Upload {file.filename!r} rejected: {e.status_code} {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return PlainTextResponse("File uploaded successfully")


@router.get("/{path:path}")
async def browse(path: str, request: Request):
    """Download a file, or list a directory with an upload form."""
    server_config = request.app.state.server_config
    target = resolve_or_raise(server_config.root_path, path)

    if await aiofiles.os.path.isfile(target):
        return await file_response(target, attach_binary=True)

    if await aiofiles.os.path.isdir(target):
        try:
            page = await run_in_threadpool(directory_lister.render, target, path)
        except OSError as e:
            logger.error(f"Error listing {target}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Error reading directory")
        return HTMLResponse(page)

    raise HTTPException(status_code=404, detail="Not found")
