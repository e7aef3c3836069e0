"""Shared secret and file presence checks on an assembled upload."""

import secrets
from collections.abc import Mapping

from uploader.models.core import FieldData, FileField, ParameterField, Rejection
from uploader.pipeline.classifier import FILE_KEY

PASSWORD_KEY = "pwd"


def validate(fields: Mapping[str, FieldData], secret: str) -> FileField | Rejection:
    """Return the file to commit, or why the upload is refused.

    Both checks always run; when both fail the missing file is reported.
    """
    rejection: Rejection | None = None

    match fields.get(PASSWORD_KEY):
        case ParameterField(value=value):
            if not secrets.compare_digest(value.encode(), secret.encode()):
                rejection = Rejection.WRONG_PASSWORD
        case _:
            rejection = Rejection.MISSING_PASSWORD

    match fields.get(FILE_KEY):
        case FileField() as file:
            return rejection or file
        case _:
            return Rejection.MISSING_FILE
