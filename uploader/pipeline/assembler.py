from collections.abc import AsyncIterable

from uploader.models.core import FieldInfo, UploadRequest


async def assemble(fields: AsyncIterable[FieldInfo]) -> UploadRequest:
    """Collect every field of the request; a repeated key keeps the last value."""
    request: UploadRequest = {}
    async for info in fields:
        request[info.key] = info.data
    return request
