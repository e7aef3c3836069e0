"""Core models for multipart field handling."""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class FieldKind(StrEnum):
    """Classification of a multipart field."""

    FILE = "file"
    PARAMETER = "parameter"


class Rejection(StrEnum):
    """Reasons an assembled upload is refused; values double as message keys."""

    MISSING_PASSWORD = "missing_password"
    WRONG_PASSWORD = "wrong_password"
    MISSING_FILE = "missing_file"


@dataclass(frozen=True, slots=True)
class FileField:
    """A file payload buffered to a scratch file."""

    file_name: str
    temp_path: Path


@dataclass(frozen=True, slots=True)
class ParameterField:
    """A scalar form value."""

    value: str


type FieldData = FileField | ParameterField


@dataclass(frozen=True, slots=True)
class FieldInfo:
    """One fully read field, keyed by its form name."""

    key: str
    data: FieldData


type UploadRequest = dict[str, FieldData]
