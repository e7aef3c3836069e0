"""Test fixtures for robyn-uploader unit tests."""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from uploader.core.lifespan import State
from uploader.core.settings import Settings
from uploader.events.blocking_pool import BlockingPool, create_blocking_pool
from uploader.pipeline.multipart import MultipartForm, iter_body

BOUNDARY = "----uploaderTestBoundary7MA4YWxkTrZu0gW"


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key.lower(), default)

    def set(self, key: str, value: str) -> None:
        self._data[key.lower()] = value


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    body: bytes | str = b""
    headers: MockHeaders = field(default_factory=MockHeaders)
    method: str = "POST"
    path: str = "/"


# -----------------------------------------------------------------------------
# Multipart builders
# -----------------------------------------------------------------------------


@dataclass
class Part:
    """One multipart part for building request bodies."""

    name: str | None
    content: bytes | str
    filename: str | None = None
    content_type: str | None = None


def build_multipart(*parts: Part, boundary: str = BOUNDARY) -> bytes:
    """Encode parts as a multipart/form-data body."""
    chunks: list[bytes] = []
    for part in parts:
        disposition = "form-data"
        if part.name is not None:
            disposition += f'; name="{part.name}"'
        if part.filename is not None:
            disposition += f'; filename="{part.filename}"'
        headers = f"Content-Disposition: {disposition}\r\n"
        if part.content_type:
            headers += f"Content-Type: {part.content_type}\r\n"
        content = part.content.encode() if isinstance(part.content, str) else part.content
        chunks.append(f"--{boundary}\r\n{headers}\r\n".encode() + content + b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode())
    return b"".join(chunks)


def content_type_header(boundary: str = BOUNDARY) -> str:
    return f"multipart/form-data; boundary={boundary}"


def make_form(body: bytes, chunk_size: int = 7, boundary: str = BOUNDARY) -> MultipartForm:
    """Build a MultipartForm that feeds ``body`` in small chunks."""
    return MultipartForm(iter_body(body, chunk_size), boundary.encode())


# -----------------------------------------------------------------------------
# Settings, pool and state fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def settings(upload_dir: Path, scratch_dir: Path) -> Settings:
    """Settings isolated from the environment, with default password 123456."""
    return Settings(
        _env_file=None,
        UPLOAD_PATH=upload_dir,
        TEMP_PATH=scratch_dir,
        CHUNK_SIZE=16,
        MAX_WORKERS=2,
        MAX_PENDING_JOBS=4,
    )


@pytest.fixture
async def pool() -> AsyncIterator[BlockingPool]:
    """A live blocking pool, shut down after the test."""
    blocking_pool = create_blocking_pool(max_workers=2, max_pending=4)
    yield blocking_pool
    blocking_pool.shutdown(wait=True)


@pytest.fixture
def test_state(settings: Settings) -> State:
    """Create a test state container."""
    return State(settings=settings)


@pytest.fixture
def global_dependencies(test_state: State) -> dict:
    """Setup global dependencies for tests."""
    yield {"state": test_state}
    test_state.clear()


@pytest.fixture
def make_mock_request():
    """Factory fixture to create mock multipart requests."""

    def _make(body: bytes | str = b"", content_type: str | None = None, **headers: str) -> MockRequest:
        request = MockRequest(body=body)
        if content_type is not None:
            request.headers.set("content-type", content_type)
        for key, value in headers.items():
            request.headers.set(key.replace("_", "-"), value)
        return request

    return _make
