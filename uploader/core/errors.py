"""Error taxonomy for the upload pipeline.

Every error carries the HTTP status the router answers with. Client errors are
caused by the submitted request; IO errors are failures on our side.
"""


class UploadError(Exception):
    """Base class for errors that abort an upload request."""

    status_code: int = 500


class ClientUploadError(UploadError):
    """The request itself is malformed or incomplete."""

    status_code = 400


class MissingFilenameError(ClientUploadError):
    """A file field did not carry a filename."""


class InvalidFilenameError(ClientUploadError):
    """The filename is not a plain base name."""


class FieldDecodeError(ClientUploadError):
    """A scalar field is not valid text in its charset."""


class MalformedMultipartError(ClientUploadError):
    """The body is not a parseable multipart/form-data payload."""


class IncompleteUploadError(ClientUploadError):
    """The body ended before the closing multipart boundary."""


class PayloadTooLargeError(ClientUploadError):
    status_code = 413


class UploadIOError(UploadError):
    """A filesystem or worker pool failure while handling the upload."""


class TempFileCreateError(UploadIOError):
    pass


class TempFileWriteError(UploadIOError):
    pass


class UploadCancelledError(UploadIOError):
    """A blocking job was cancelled before it completed."""


class CommitError(UploadIOError):
    """Copying the scratch file into the upload directory failed."""
