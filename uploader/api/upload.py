"""Index page and upload endpoints, mounted under the configured URI."""

from asgi_correlation_id import correlation_id
from robyn import Response, status_codes

from uploader.core.logger import LogIcon, logger
from uploader.core.router import Router
from uploader.core.settings import Settings
from uploader.pipeline.multipart import MultipartForm
from uploader.pipeline.upload import process_upload


def create_upload_router(settings: Settings) -> Router:
    """Build the router for ``GET <URI>`` and ``POST <URI>/upload``."""
    router = Router(__file__, prefix=settings.URI, settings=settings)

    @router.get("" if settings.URI else "/")
    async def index(global_dependencies) -> Response:
        return Response(
            status_code=status_codes.HTTP_200_OK,
            headers={"content-type": "text/html; charset=utf-8"},
            description=global_dependencies["state"].index_page,
        )

    @router.post("/upload")
    async def upload(form: MultipartForm, global_dependencies) -> str:
        """Store the submitted file if the password matches."""
        state = global_dependencies["state"]
        logger.info("Upload received", icon=LogIcon.UPLOAD)
        return await process_upload(
            form,
            settings=state.settings,
            pool=state.blocking_pool,
            request_id=correlation_id.get() or "anonymous",
        )

    return router
