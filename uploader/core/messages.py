"""User facing response texts, per locale."""

from enum import StrEnum


class Message(StrEnum):
    MISSING_PASSWORD = "missing_password"
    WRONG_PASSWORD = "wrong_password"
    MISSING_FILE = "missing_file"
    UPLOAD_SUCCEEDED = "upload_succeeded"
    COPY_FAILED = "copy_failed"


CATALOG: dict[str, dict[Message, str]] = {
    "en": {
        Message.MISSING_PASSWORD: "please enter a password",
        Message.WRONG_PASSWORD: "incorrect password",
        Message.MISSING_FILE: "please select a file",
        Message.UPLOAD_SUCCEEDED: "upload succeeded",
        Message.COPY_FAILED: "file copy failed: {error}",
    },
    "zh": {
        Message.MISSING_PASSWORD: "请输入密码!",
        Message.WRONG_PASSWORD: "密码错误!",
        Message.MISSING_FILE: "请选择文件!",
        Message.UPLOAD_SUCCEEDED: "文件上传成功",
        Message.COPY_FAILED: "文件复制失败 {error}",
    },
}


def translate(locale: str, message: Message | str, **params: object) -> str:
    """Return the text for ``message`` in ``locale``, falling back to English."""
    texts = CATALOG.get(locale, CATALOG["en"])
    return texts[Message(message)].format(**params)
