"""Field classification and reader dispatch."""

from collections.abc import AsyncIterator

from uploader.events.blocking_pool import BlockingPool
from uploader.models.core import FieldInfo, FieldKind
from uploader.pipeline.multipart import MultipartField, MultipartForm
from uploader.pipeline.readers import read_file, read_parameter
from uploader.pipeline.scratch import ScratchSpace

FILE_KEY = "file"


def classify(field: MultipartField, file_key: str = FILE_KEY) -> FieldKind:
    """Decide from disposition metadata alone whether a field is a file.

    A field named like the file field is routed to the file reader even
    without a filename, so that it is refused instead of read as text.
    """
    if field.filename is not None or field.key == file_key:
        return FieldKind.FILE
    return FieldKind.PARAMETER


async def read_field(field: MultipartField, scratch: ScratchSpace, pool: BlockingPool) -> FieldInfo:
    match classify(field):
        case FieldKind.FILE:
            return await read_file(field, scratch, pool)
        case FieldKind.PARAMETER:
            return await read_parameter(field)


async def read_fields(form: MultipartForm, scratch: ScratchSpace, pool: BlockingPool) -> AsyncIterator[FieldInfo]:
    """Yield one FieldInfo per field of ``form``, in body order."""
    async for field in form:
        yield await read_field(field, scratch, pool)
