"""robyn-uploader - password protected file uploads powered by Robyn."""

from robyn import Robyn

from uploader.api.health import router as health_router
from uploader.api.upload import create_upload_router
from uploader.core.lifespan import create_lifespan
from uploader.core.logger import LogIcon, logger
from uploader.core.settings import settings as st
from uploader.events.blocking_pool import BlockingPoolEvent
from uploader.events.index_page import IndexPageEvent
from uploader.middlewares.base import MiddlewareHandler
from uploader.middlewares.files import FileUploadOpenAPIMiddleware

app = Robyn(__file__)

# Lifespan events
lifespan = create_lifespan(app, st)
lifespan.register(BlockingPoolEvent).register(IndexPageEvent)

app.startup_handler(lifespan.startup)
app.shutdown_handler(lifespan.shutdown)

# Routers
app.include_router(health_router)
app.include_router(create_upload_router(st))

# Middlewares
middlewares = MiddlewareHandler(app)
middlewares.register(FileUploadOpenAPIMiddleware())


def main() -> None:
    logger.info(
        "Starting uploader",
        icon=LogIcon.START,
        host=st.API_HOST,
        port=st.API_PORT,
        uri=st.URI or "/",
        upload_path=str(st.UPLOAD_PATH),
    )
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
