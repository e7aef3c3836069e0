"""OpenAPI patch describing the multipart upload form."""

import orjson
from robyn import Request, Response

from uploader.core.logger import LogIcon, logger
from uploader.core.router import FILE_UPLOAD_ENDPOINTS
from uploader.middlewares.base import BaseMiddleware

UPLOAD_FORM_SCHEMA = {
    "type": "object",
    "properties": {
        "pwd": {
            "type": "string",
            "format": "password",
            "description": "Shared upload password",
        },
        "file": {
            "type": "string",
            "format": "binary",
            "description": "File to upload, stored under its own name",
        },
    },
    "required": ["pwd", "file"],
}


def patch_upload_forms(document: dict, endpoints: set[str]) -> dict:
    """Set the multipart request body on every known upload endpoint of ``document``."""
    paths = document.get("paths", {})
    for endpoint in endpoints:
        for operation in paths.get(endpoint, {}).values():
            operation["requestBody"] = {
                "content": {"multipart/form-data": {"schema": UPLOAD_FORM_SCHEMA}},
                "required": True,
            }
    return document


class FileUploadOpenAPIMiddleware(BaseMiddleware):
    """Patches OpenAPI responses to use multipart/form-data for upload endpoints."""

    endpoints = frozenset(["/openapi.json"])

    def __init__(self) -> None:
        super().__init__(self.endpoints)

    def before(self, request: Request) -> Request:
        return request

    def after(self, response: Response) -> Response:
        if not FILE_UPLOAD_ENDPOINTS:
            return response

        try:
            document = orjson.loads(response.description)
        except orjson.JSONDecodeError as ex:
            logger.warning("OpenAPI document is not JSON, left unpatched", icon=LogIcon.WARNING, error=str(ex))
            return response

        response.description = orjson.dumps(patch_upload_forms(document, FILE_UPLOAD_ENDPOINTS)).decode()
        return response
