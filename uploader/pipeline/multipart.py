"""Incremental multipart/form-data field stream.

``MultipartForm`` feeds body chunks into python-multipart's callback parser and
exposes the result as an async iterator of ``MultipartField`` objects. Each
field is itself an async iterator over its payload bytes, driven by the same
parser, so no part is ever held in memory as a whole. Fields are produced in
body order; a field that its consumer skipped is drained before the next one
is yielded.
"""

from collections import deque
from collections.abc import AsyncIterable, AsyncIterator
from enum import IntEnum, auto

from python_multipart.exceptions import FormParserError
from python_multipart.multipart import MultipartParser, parse_options_header

from uploader.core.errors import IncompleteUploadError, MalformedMultipartError


class PartEvent(IntEnum):
    PART_BEGIN = auto()
    PART_DATA = auto()
    PART_END = auto()
    HEADER_FIELD = auto()
    HEADER_VALUE = auto()
    HEADER_END = auto()
    HEADERS_FINISHED = auto()
    END = auto()


def _user_safe_decode(src: bytes, charset: str) -> str:
    try:
        return src.decode(charset)
    except (UnicodeDecodeError, LookupError):
        return src.decode("latin-1")


def parse_boundary(content_type: str | None) -> tuple[bytes, str]:
    """Return ``(boundary, charset)`` from a multipart Content-Type header."""
    media_type, params = parse_options_header(content_type)
    if media_type.lower() != b"multipart/form-data":
        raise MalformedMultipartError(f"expected multipart/form-data, got {media_type.decode('latin-1') or 'nothing'}")
    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedMultipartError("multipart/form-data without boundary")
    charset = params.get(b"charset", b"utf-8").decode("latin-1")
    return boundary, charset


async def iter_body(body: bytes, chunk_size: int) -> AsyncIterator[bytes]:
    """Split an already received body into chunks for the parser."""
    view = memoryview(body)
    for start in range(0, len(view), chunk_size):
        yield bytes(view[start:start + chunk_size])


class MultipartField:
    """One part of the form: disposition metadata plus a one-shot byte stream."""

    def __init__(self, form: "MultipartForm", headers: dict[bytes, bytes]) -> None:
        self._form = form
        self._consumed = False
        self._finished = False
        self.size = 0

        _, options = parse_options_header(headers.get(b"content-disposition"))
        raw_name = options.get(b"name")
        raw_filename = options.get(b"filename")
        self.name = _user_safe_decode(raw_name, form.charset) if raw_name is not None else None
        self.filename = _user_safe_decode(raw_filename, form.charset) if raw_filename is not None else None
        self.content_type = headers.get(b"content-type", b"").decode("latin-1")

        _, type_options = parse_options_header(headers.get(b"content-type"))
        self.charset = type_options.get(b"charset", form.charset.encode("latin-1")).decode("latin-1")

    @property
    def key(self) -> str:
        return self.name or ""

    def __repr__(self) -> str:
        return f"MultipartField(key={self.key!r}, filename={self.filename!r})"

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise RuntimeError(f"stream of field {self.key!r} was already consumed")
        self._consumed = True
        return self._chunks()

    async def _chunks(self) -> AsyncIterator[bytes]:
        while not self._finished:
            event, data = await self._form.next_event()
            match event:
                case PartEvent.PART_DATA:
                    self.size += len(data)
                    yield data
                case PartEvent.PART_END:
                    self._finished = True
                case _:
                    raise MalformedMultipartError(f"unexpected {event.name} inside field {self.key!r}")

    async def drain(self) -> None:
        """Discard whatever the consumer did not read."""
        while not self._finished:
            event, _ = await self._form.next_event()
            if event is PartEvent.PART_END:
                self._finished = True


class MultipartForm:
    """Async iterator of the fields of one multipart body."""

    def __init__(self, chunks: AsyncIterable[bytes], boundary: bytes, charset: str = "utf-8") -> None:
        self.charset = charset
        self._chunks = aiter(chunks)
        self._events: deque[tuple[PartEvent, bytes]] = deque()
        self._exhausted = False
        self._parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": lambda: self._events.append((PartEvent.PART_BEGIN, b"")),
                "on_part_data": self._on_data(PartEvent.PART_DATA),
                "on_part_end": lambda: self._events.append((PartEvent.PART_END, b"")),
                "on_header_field": self._on_data(PartEvent.HEADER_FIELD),
                "on_header_value": self._on_data(PartEvent.HEADER_VALUE),
                "on_header_end": lambda: self._events.append((PartEvent.HEADER_END, b"")),
                "on_headers_finished": lambda: self._events.append((PartEvent.HEADERS_FINISHED, b"")),
                "on_end": self._on_end,
            },
        )

    def _on_data(self, event: PartEvent):
        def callback(data: bytes, start: int, end: int) -> None:
            if end > start:
                self._events.append((event, data[start:end]))

        return callback

    def _on_end(self) -> None:
        self._events.append((PartEvent.END, b""))

    async def next_event(self) -> tuple[PartEvent, bytes]:
        """Return the next parser event, pulling body chunks as needed."""
        while not self._events:
            if self._exhausted:
                raise IncompleteUploadError("multipart body ended before its closing boundary")
            try:
                chunk = await anext(self._chunks)
            except StopAsyncIteration:
                self._exhausted = True
                continue
            try:
                self._parser.write(chunk)
            except FormParserError as ex:
                raise MalformedMultipartError(f"malformed multipart body: {ex}") from ex
        return self._events.popleft()

    async def __aiter__(self) -> AsyncIterator[MultipartField]:
        headers: dict[bytes, bytes] = {}
        header_field = b""
        header_value = b""

        while True:
            event, data = await self.next_event()
            match event:
                case PartEvent.PART_BEGIN:
                    headers = {}
                case PartEvent.HEADER_FIELD:
                    header_field += data
                case PartEvent.HEADER_VALUE:
                    header_value += data
                case PartEvent.HEADER_END:
                    headers[header_field.lower()] = header_value
                    header_field = b""
                    header_value = b""
                case PartEvent.HEADERS_FINISHED:
                    field = MultipartField(self, headers)
                    yield field
                    await field.drain()
                case PartEvent.END:
                    return
                case _:
                    raise MalformedMultipartError(f"unexpected {event.name} between fields")
