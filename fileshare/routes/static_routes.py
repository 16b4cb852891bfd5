import aiofiles.os
from fastapi import APIRouter, HTTPException, Request

from fileshare import config
from fileshare.routes.common import file_response, resolve_or_raise

router = APIRouter()


@router.get("/{path:path}")
async def serve_static(path: str, request: Request):
    """Serve a file from the web root, falling back to index.html for directories."""
    server_config = request.app.state.server_config

    if not path or path.endswith("/"):
        path += config.INDEX_FILE

    target = resolve_or_raise(server_config.root_path, path)
    if not await aiofiles.os.path.isfile(target):
        raise HTTPException(status_code=404, detail="Not Found")

    return await file_response(target, attach_binary=False)
