"""Move a validated scratch file into the upload directory."""

import os
import shutil
import uuid
from pathlib import Path

from uploader.core.errors import CommitError, UploadCancelledError
from uploader.core.logger import LogIcon, logger
from uploader.events.blocking_pool import BlockingPool, BlockingTaskCancelled
from uploader.models.core import FileField


def copy_into_place(source: Path, destination: Path) -> None:
    """Copy ``source`` to ``destination`` through a staging file and an atomic rename."""
    staging = destination.with_name(f".{destination.name}.{uuid.uuid4().hex}.part")
    try:
        shutil.copyfile(source, staging)
        os.replace(staging, destination)
    except BaseException:
        staging.unlink(missing_ok=True)
        raise


async def commit(file: FileField, upload_dir: Path, pool: BlockingPool) -> Path:
    """Publish ``file`` as ``upload_dir / file.file_name``, replacing any previous file."""
    destination = upload_dir / file.file_name
    try:
        await pool.run(copy_into_place, file.temp_path, destination)
    except OSError as ex:
        raise CommitError(str(ex)) from ex
    except BlockingTaskCancelled as ex:
        raise UploadCancelledError(str(ex)) from ex

    logger.info("Upload committed", icon=LogIcon.SUCCESS, destination=str(destination))
    return destination
