"""Upload request pipeline: buffer every field, validate, then commit."""

from uploader.core.errors import CommitError
from uploader.core.logger import LogIcon, logger
from uploader.core.messages import Message, translate
from uploader.core.settings import Settings
from uploader.events.blocking_pool import BlockingPool
from uploader.models.core import FileField, Rejection
from uploader.pipeline.assembler import assemble
from uploader.pipeline.classifier import read_fields
from uploader.pipeline.commit import commit
from uploader.pipeline.multipart import MultipartForm
from uploader.pipeline.scratch import ScratchSpace
from uploader.pipeline.validator import validate


async def process_upload(form: MultipartForm, *, settings: Settings, pool: BlockingPool, request_id: str) -> str:
    """Handle one upload and return the response text.

    The whole body is read before anything is decided, since the password may
    arrive after the file. Scratch files never outlive the request. Errors that
    make the request itself fail are raised as ``UploadError``.
    """
    async with ScratchSpace(pool, settings.temp_path, request_id) as scratch:
        fields = await assemble(read_fields(form, scratch, pool))
        logger.info("Upload assembled", icon=LogIcon.PROCESSING, keys=sorted(fields))

        match validate(fields, settings.UPLOAD_PASSWORD.get_secret_value()):
            case Rejection() as rejection:
                logger.warning("Upload rejected", icon=LogIcon.FORBIDDEN, reason=rejection.value)
                return translate(settings.LOCALE, rejection)
            case FileField() as file:
                try:
                    await commit(file, settings.UPLOAD_PATH, pool)
                except CommitError as ex:
                    logger.error("Upload commit failed", icon=LogIcon.ERROR, file_name=file.file_name, error=str(ex))
                    return translate(settings.LOCALE, Message.COPY_FAILED, error=ex)
                return translate(settings.LOCALE, Message.UPLOAD_SUCCEEDED)
