from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import aiofiles
import aiofiles.os

from fileshare import config
from fileshare.logger_config import setup_logger
from fileshare.services import path_guard

logger = setup_logger()


class UploadError(Exception):
    status_code = 500
    detail = "Failed to save file"

    def __init__(self, detail: Optional[str] = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class InvalidFilename(UploadError):
    status_code = 400
    detail = "Invalid file name"


class TooLarge(UploadError):
    status_code = 413
    detail = "Uploaded file is too large"


class ForbiddenTarget(UploadError):
    status_code = 403
    detail = "Invalid target directory"


class Conflict(UploadError):
    status_code = 409
    detail = "File already exists"


class WriteFailed(UploadError):
    pass


@dataclass
class UploadRequest:
    filename: str
    content_type: Optional[str]
    stream: Any  # anything with an async read(size), e.g. UploadFile
    size: int
    target_dir: Optional[str] = None


def safe_filename(filename: str) -> str:
    """Keep only the last path component of a client supplied filename."""
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    if name in ("", ".", "..") or "\x00" in name:
        raise InvalidFilename()
    return name


async def occupied(path: Path) -> bool:
    """True if anything, including a dangling symlink, sits at path."""
    return await aiofiles.os.path.exists(path) or await aiofiles.os.path.islink(path)


def resolve_target_dir(root: Path, target_dir: Optional[str]) -> Path:
    resolved = path_guard.resolve(root, target_dir or "")
    if not resolved.allowed:
        logger.warning(f"Rejected upload target {target_dir!r}: {resolved.reason.value}")
        raise ForbiddenTarget()
    return resolved.path


async def receive(upload: UploadRequest, root: Path, max_upload_bytes: int = config.MAX_UPLOAD_SIZE) -> Path:
    """Validate an upload and write it below ``root`` without overwriting.

    Args:
        upload: The received file and its optional target directory.
        root: The directory uploads are confined to.
        max_upload_bytes: Largest accepted payload, inclusive.

    Returns:
        Path: where the file was written.

    Raises:
        UploadError: a subclass carrying the HTTP status for the failure.
    """
    if not upload.filename:
        raise InvalidFilename("No file uploaded")
    if upload.size > max_upload_bytes:
        raise TooLarge()

    filename = safe_filename(upload.filename)
    target = resolve_target_dir(root, upload.target_dir)
    destination = target / filename

    if await occupied(destination):
        raise Conflict()

    if not await aiofiles.os.path.isdir(target):
        if await occupied(target):
            raise Conflict(f"Target is not a directory: {upload.target_dir}")
        # Validate again right before creating anything
        target = resolve_target_dir(root, upload.target_dir)
        try:
            await aiofiles.os.makedirs(target, exist_ok=True)
        except OSError as e:
            logger.error(f"Error creating directory {target}: {e}", exc_info=True)
            raise WriteFailed()
        logger.debug(f"Created upload directory: {target}")

    written = 0
    try:
        # Exclusive create: a concurrent upload of the same name loses here
        async with aiofiles.open(destination, "xb") as f:
            while chunk := await upload.stream.read(config.CHUNK_SIZE):
                written += len(chunk)
                await f.write(chunk)
    except FileExistsError:
        raise Conflict()
    except OSError as e:
        logger.error(f"Error writing upload {destination}: {e}", exc_info=True)
        # Clean up the partial file
        if await aiofiles.os.path.exists(destination):
            await aiofiles.os.unlink(destination)
        raise WriteFailed()

    logger.info(f"Stored upload {filename} ({written} bytes) in {target}")
    return destination
