"""Unified settings for robyn-uploader."""

import tempfile
import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# Room for boundaries, part headers and the password field around the file bytes
MULTIPART_ENVELOPE = 64 * 1024


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict."""
    if not pyproject_path.is_file():
        return {}
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(base_dir: Path) -> str:
    """Get version from git tags or fallback to package metadata."""
    try:
        import git

        repo = git.Repo(base_dir, search_parent_directories=True)
        latest_tag = max(repo.tags, key=lambda t: t.commit.committed_datetime, default=None)
        return str(latest_tag) if latest_tag else "0.0.0"
    except Exception:
        try:
            import importlib.metadata

            return importlib.metadata.version("robyn-uploader")
        except Exception:
            return "0.0.0"


class Settings(BaseSettings):
    """Unified settings for the upload service.

    Values are resolved once at startup from init kwargs, the environment,
    ``.env`` and ``uploader.toml``, in that order of priority.
    """

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "robyn-uploader")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("project", {}).get("description", "File upload service")
    API_VERSION: ClassVar[str] = get_version(BASE_DIR)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5051
    URI: str = "/file_uploader"

    # Storage
    UPLOAD_PATH: Path = Field(default_factory=Path.cwd)
    TEMP_PATH: Path | None = None
    MAX_FILE_SIZE_MB: float = Field(default=10, gt=0)

    # Access
    UPLOAD_PASSWORD: SecretStr = SecretStr("123456")
    LOCALE: Literal["en", "zh"] = "en"

    # Workers
    MAX_WORKERS: int = Field(default=4, ge=1)
    MAX_PENDING_JOBS: int = Field(default=16, ge=1)
    CHUNK_SIZE: int = Field(default=64 * 1024, ge=1)

    @field_validator("URI")
    @classmethod
    def normalize_uri(cls, value: str) -> str:
        value = "/" + value.strip().strip("/")
        return value if value != "/" else ""

    @property
    def api_url(self) -> str:
        return f"http://{self.API_HOST}:{self.API_PORT}"

    @property
    def upload_url(self) -> str:
        return f"{self.URI}/upload"

    @property
    def max_file_size(self) -> int:
        """Maximum accepted file size in bytes."""
        return int(self.MAX_FILE_SIZE_MB * 1024 * 1024)

    @property
    def max_body_size(self) -> int:
        return self.max_file_size + MULTIPART_ENVELOPE

    @property
    def temp_path(self) -> Path:
        return self.TEMP_PATH or Path(tempfile.gettempdir())

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", toml_file="uploader.toml")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


settings = Settings()  # type: ignore
