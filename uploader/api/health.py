"""Health check endpoint."""

from pydantic import BaseModel

from uploader.core.logger import LogIcon, logger
from uploader.core.router import Router
from uploader.core.settings import settings as st

router = Router(__file__, prefix="/", settings=st)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    service: str
    version: str
    upload_path: str


@router.get("/health")
async def health_check() -> HealthResponse:
    logger.info("Health check requested", icon=LogIcon.HEALTHCHECK)
    return HealthResponse(status="healthy", service=st.API_NAME, version=st.API_VERSION, upload_path=str(st.UPLOAD_PATH))
