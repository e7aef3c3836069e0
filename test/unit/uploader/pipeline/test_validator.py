"""Tests for password and file presence validation."""

from pathlib import Path

import pytest

from uploader.models.core import FileField, ParameterField, Rejection
from uploader.pipeline.validator import validate

SECRET = "123456"
FILE = FileField(file_name="report.pdf", temp_path=Path("/tmp/upload-r.tmp"))


@pytest.mark.parametrize(
    ("fields", "expected"),
    [
        ({"pwd": ParameterField(SECRET), "file": FILE}, FILE),
        ({"file": FILE}, Rejection.MISSING_PASSWORD),
        ({"pwd": ParameterField("wrong"), "file": FILE}, Rejection.WRONG_PASSWORD),
        ({"pwd": ParameterField(""), "file": FILE}, Rejection.WRONG_PASSWORD),
        ({"pwd": ParameterField(SECRET)}, Rejection.MISSING_FILE),
        # file presence error overrides password errors
        ({"pwd": ParameterField("wrong")}, Rejection.MISSING_FILE),
        ({}, Rejection.MISSING_FILE),
        # wrong variants
        ({"pwd": FILE, "file": FILE}, Rejection.MISSING_PASSWORD),
        ({"pwd": ParameterField(SECRET), "file": ParameterField("report.pdf")}, Rejection.MISSING_FILE),
    ],
)
def test_validate(fields, expected) -> None:
    assert validate(fields, SECRET) == expected


def test_other_fields_ignored() -> None:
    fields = {"pwd": ParameterField(SECRET), "file": FILE, "comment": ParameterField("hi")}
    assert validate(fields, SECRET) is FILE


def test_password_compared_exactly() -> None:
    assert validate({"pwd": ParameterField(SECRET + " "), "file": FILE}, SECRET) is Rejection.WRONG_PASSWORD


def test_non_ascii_password() -> None:
    assert validate({"pwd": ParameterField("密码"), "file": FILE}, "密码") is FILE


def test_validate_does_not_mutate_fields() -> None:
    fields = {"pwd": ParameterField(SECRET), "file": FILE}
    validate(fields, SECRET)
    assert fields == {"pwd": ParameterField(SECRET), "file": FILE}
