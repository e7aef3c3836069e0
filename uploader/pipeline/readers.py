"""Field readers: scalar values into memory, file payloads into scratch files."""

from pathlib import PurePosixPath, PureWindowsPath
from typing import BinaryIO

from uploader.core.errors import (
    FieldDecodeError,
    InvalidFilenameError,
    MissingFilenameError,
    TempFileWriteError,
    UploadCancelledError,
)
from uploader.core.logger import LogIcon, logger
from uploader.events.blocking_pool import BlockingPool, BlockingTaskCancelled
from uploader.models.core import FieldInfo, FileField, ParameterField
from uploader.pipeline.multipart import MultipartField
from uploader.pipeline.scratch import ScratchSpace


def check_file_name(file_name: str) -> str:
    """Return ``file_name`` unchanged if it is a plain base name."""
    if file_name in (".", "..") or "\x00" in file_name:
        raise InvalidFilenameError(f"invalid file name {file_name!r}")
    if PurePosixPath(file_name).name != file_name or PureWindowsPath(file_name).name != file_name:
        raise InvalidFilenameError(f"file name {file_name!r} must not contain a path")
    return file_name


async def read_parameter(field: MultipartField) -> FieldInfo:
    """Accumulate a scalar field and decode it as text."""
    buffer = bytearray()
    async for chunk in field:
        buffer.extend(chunk)

    try:
        value = buffer.decode(field.charset)
    except (UnicodeDecodeError, LookupError) as ex:
        raise FieldDecodeError(f"field {field.key!r} is not valid {field.charset} text") from ex

    return FieldInfo(key=field.key, data=ParameterField(value=value))


async def _close_off_loop(handle: BinaryIO, pool: BlockingPool) -> None:
    try:
        await pool.run(handle.close)
    except BlockingTaskCancelled:
        # Pool already closed
        handle.close()


async def read_file(field: MultipartField, scratch: ScratchSpace, pool: BlockingPool) -> FieldInfo:
    """Stream a file field into a fresh scratch file.

    Each chunk is written on the blocking pool and the next chunk is only
    requested once the previous write returned, so the scratch file holds the
    payload in body order.
    """
    if not field.filename:
        raise MissingFilenameError(f"field {field.key!r} carries no filename")
    file_name = check_file_name(field.filename)

    temp_path, handle = await scratch.create()
    logger.info("Buffering file field", icon=LogIcon.STREAMING, key=field.key, file_name=file_name)

    written = 0
    try:
        async for chunk in field:
            await pool.run(handle.write, chunk)
            written += len(chunk)
        await pool.run(handle.close)
    except OSError as ex:
        raise TempFileWriteError(f"cannot write scratch file {temp_path}: {ex}") from ex
    except BlockingTaskCancelled as ex:
        raise UploadCancelledError(f"upload of {file_name!r} did not complete: {ex}") from ex
    finally:
        if not handle.closed:
            await _close_off_loop(handle, pool)

    logger.info("File field buffered", icon=LogIcon.FILE, file_name=file_name, size=written)
    return FieldInfo(key=field.key, data=FileField(file_name=file_name, temp_path=temp_path))
