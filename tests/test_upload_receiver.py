import io
import os

import pytest

from fileshare.services import upload_receiver
from fileshare.services.upload_receiver import (
    Conflict,
    ForbiddenTarget,
    InvalidFilename,
    TooLarge,
    UploadRequest,
    WriteFailed,
)


class BytesStream:
    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


class BrokenStream:
    def __init__(self):
        self.calls = 0

    async def read(self, size: int = -1) -> bytes:
        self.calls += 1
        if self.calls > 1:
            raise OSError("connection reset")
        return b"partial"


def make_upload(data: bytes, filename: str = "a.txt", target_dir=None) -> UploadRequest:
    return UploadRequest(
        filename=filename,
        content_type="text/plain",
        stream=BytesStream(data),
        size=len(data),
        target_dir=target_dir,
    )


@pytest.mark.asyncio
async def test_upload_writes_file(tmp_path):
    destination = await upload_receiver.receive(make_upload(b"hello"), tmp_path)
    assert destination == tmp_path.resolve() / "a.txt"
    assert destination.read_bytes() == b"hello"


@pytest.mark.asyncio
async def test_second_upload_with_same_name_conflicts(tmp_path):
    await upload_receiver.receive(make_upload(b"first"), tmp_path)
    with pytest.raises(Conflict):
        await upload_receiver.receive(make_upload(b"second"), tmp_path)
    assert (tmp_path / "a.txt").read_bytes() == b"first"


@pytest.mark.asyncio
async def test_size_boundary(tmp_path):
    await upload_receiver.receive(make_upload(b"x" * 10, "exact.bin"), tmp_path, max_upload_bytes=10)
    assert (tmp_path / "exact.bin").stat().st_size == 10

    with pytest.raises(TooLarge):
        await upload_receiver.receive(make_upload(b"x" * 11, "over.bin"), tmp_path, max_upload_bytes=10)
    assert not (tmp_path / "over.bin").exists()


@pytest.mark.asyncio
async def test_empty_filename(tmp_path):
    with pytest.raises(InvalidFilename):
        await upload_receiver.receive(make_upload(b"data", ""), tmp_path)


@pytest.mark.asyncio
@pytest.mark.parametrize("filename", ["dir/", "..", "a/..", "..\\..\\.", "evil\x00.txt"])
async def test_unusable_filenames(tmp_path, filename):
    with pytest.raises(InvalidFilename):
        await upload_receiver.receive(make_upload(b"data", filename), tmp_path)


@pytest.mark.asyncio
@pytest.mark.parametrize("filename", ["../../evil.txt", "/etc/evil.txt", "C:\\Windows\\evil.txt", "nested/dirs/evil.txt"])
async def test_directory_components_are_stripped(tmp_path, filename):
    root = tmp_path / "root"
    root.mkdir()
    destination = await upload_receiver.receive(make_upload(b"data", filename), root)
    assert destination == root.resolve() / "evil.txt"
    assert os.listdir(root) == ["evil.txt"]


@pytest.mark.asyncio
@pytest.mark.parametrize("target_dir", ["../outside", "/etc", "sub/../../outside", "%2e%2e"])
async def test_target_outside_root_is_forbidden(tmp_path, target_dir):
    root = tmp_path / "root"
    root.mkdir()
    with pytest.raises(ForbiddenTarget):
        await upload_receiver.receive(make_upload(b"data", target_dir=target_dir), root)
    assert not (tmp_path / "outside").exists()


@pytest.mark.asyncio
async def test_missing_target_directory_is_created(tmp_path):
    destination = await upload_receiver.receive(make_upload(b"data", target_dir="new/nested"), tmp_path)
    assert destination == tmp_path.resolve() / "new" / "nested" / "a.txt"
    assert destination.read_bytes() == b"data"


@pytest.mark.asyncio
async def test_file_occupying_target_directory_conflicts(tmp_path):
    (tmp_path / "taken").write_text("file")
    with pytest.raises(Conflict):
        await upload_receiver.receive(make_upload(b"data", target_dir="taken"), tmp_path)


@pytest.mark.asyncio
async def test_dangling_symlink_is_not_followed(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    os.symlink(tmp_path / "outside.txt", root / "a.txt")
    with pytest.raises(Conflict):
        await upload_receiver.receive(make_upload(b"data"), root)
    assert not (tmp_path / "outside.txt").exists()


@pytest.mark.asyncio
async def test_symlinked_target_outside_root_is_forbidden(tmp_path):
    root = tmp_path / "www"
    root.mkdir()
    sibling = tmp_path / "www-secret"
    sibling.mkdir()
    os.symlink(sibling, root / "escape")
    with pytest.raises(ForbiddenTarget):
        await upload_receiver.receive(make_upload(b"data", target_dir="escape"), root)
    assert os.listdir(sibling) == []


@pytest.mark.asyncio
async def test_failed_write_removes_partial_file(tmp_path):
    upload = UploadRequest(filename="a.txt", content_type=None, stream=BrokenStream(), size=100)
    with pytest.raises(WriteFailed):
        await upload_receiver.receive(upload, tmp_path)
    assert not (tmp_path / "a.txt").exists()


def test_errors_carry_http_status():
    assert InvalidFilename.status_code == 400
    assert ForbiddenTarget.status_code == 403
    assert Conflict.status_code == 409
    assert TooLarge.status_code == 413
    assert WriteFailed.status_code == 500
    assert str(InvalidFilename("No file uploaded")) == "No file uploaded"
