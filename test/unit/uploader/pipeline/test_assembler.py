"""Tests for assembling field results into an upload request."""

from pathlib import Path

import pytest

from uploader.models.core import FieldInfo, FileField, ParameterField
from uploader.pipeline.assembler import assemble


async def field_stream(*infos: FieldInfo):
    for info in infos:
        yield info


async def test_collects_all_fields() -> None:
    file = FileField(file_name="a.txt", temp_path=Path("/tmp/upload-x.tmp"))

    request = await assemble(
        field_stream(
            FieldInfo("pwd", ParameterField("123456")),
            FieldInfo("file", file),
        )
    )

    assert request == {"pwd": ParameterField("123456"), "file": file}


async def test_last_write_wins() -> None:
    request = await assemble(
        field_stream(
            FieldInfo("pwd", ParameterField("first")),
            FieldInfo("pwd", ParameterField("second")),
        )
    )

    assert request == {"pwd": ParameterField("second")}


async def test_later_variant_replaces_earlier() -> None:
    file = FileField(file_name="a.txt", temp_path=Path("/tmp/upload-y.tmp"))

    request = await assemble(
        field_stream(
            FieldInfo("file", ParameterField("text")),
            FieldInfo("file", file),
        )
    )

    assert request["file"] is file


async def test_empty_stream() -> None:
    assert await assemble(field_stream()) == {}


async def test_reader_errors_propagate() -> None:
    async def failing_stream():
        yield FieldInfo("pwd", ParameterField("123456"))
        raise RuntimeError("reader failed")

    with pytest.raises(RuntimeError, match="reader failed"):
        await assemble(failing_stream())
