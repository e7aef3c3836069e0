"""Per-request scratch files for buffering file fields."""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import BinaryIO

from uploader.core.errors import TempFileCreateError, UploadCancelledError
from uploader.core.logger import LogIcon, logger
from uploader.events.blocking_pool import BlockingPool, BlockingTaskCancelled


def _create_scratch_file(directory: Path, prefix: str) -> tuple[Path, BinaryIO]:
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=".tmp", dir=directory)
    return Path(name), os.fdopen(fd, "wb")


def _remove_files(paths: list[Path]) -> None:
    for path in paths:
        path.unlink(missing_ok=True)


class ScratchSpace:
    """Owns the scratch files of one request.

    Names are unique per request (``upload-<request id>-<random>.tmp``) and
    every file handed out is removed when the ``async with`` block exits,
    whatever the outcome.
    """

    def __init__(self, pool: BlockingPool, directory: Path, request_id: str) -> None:
        self._pool = pool
        self._directory = directory
        self._prefix = f"upload-{request_id}-"
        self._paths: list[Path] = []

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    async def create(self) -> tuple[Path, BinaryIO]:
        """Create a new scratch file and return its path and an open handle.

        If the request is cancelled while the worker is still creating the
        file, the file is recorded anyway so that exiting the block removes it.
        """
        job = asyncio.ensure_future(self._pool.run(_create_scratch_file, self._directory, self._prefix))
        try:
            path, handle = await asyncio.shield(job)
        except asyncio.CancelledError:
            await self._adopt_orphan(job)
            raise
        except OSError as ex:
            raise TempFileCreateError(f"cannot create scratch file in {self._directory}: {ex}") from ex
        except BlockingTaskCancelled as ex:
            raise UploadCancelledError(str(ex)) from ex
        self._paths.append(path)
        return path, handle

    async def _adopt_orphan(self, job: asyncio.Future) -> None:
        await asyncio.wait([job])
        if job.cancelled() or job.exception() is not None:
            return
        path, handle = job.result()
        handle.close()
        self._paths.append(path)

    async def __aenter__(self) -> "ScratchSpace":
        return self

    async def __aexit__(self, *exc_info) -> None:
        if not self._paths:
            return
        paths, self._paths = self._paths, []
        try:
            await self._pool.run(_remove_files, paths)
        except BlockingTaskCancelled:
            # Pool already gone: remove inline rather than leak the files
            _remove_files(paths)
        logger.info("Scratch files removed", icon=LogIcon.CLEANUP, count=len(paths))
