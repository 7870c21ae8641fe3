"""HTTP request and response objects used by a request context."""

from __future__ import annotations

import email.policy
import email.utils
import io
import posixpath
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from email.parser import BytesParser
from typing import Any, BinaryIO
from urllib.parse import SplitResult, parse_qs, urlsplit

from ginctx.debug import debug_print

_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789"
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

FORM_URLENCODED = "application/x-www-form-urlencoded"
MULTIPART_FORM = "multipart/form-data"


def _canonical_key(key: str) -> str:
    """Capitalise each dash-separated word; keys with odd characters stay as they are."""
    if not key or any(ch not in _TOKEN_CHARS for ch in key):
        return key
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


class Headers:
    """Case-insensitive HTTP header fields, each holding one or more values."""

    def __init__(self, items: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None) -> None:
        self._values: dict[str, list[str]] = {}
        if items is None:
            return
        pairs = items.items() if isinstance(items, Mapping) else items
        for key, value in pairs:
            if isinstance(value, (list, tuple)):
                for item in value:
                    self.add(key, item)
            else:
                self.add(key, value)

    def get(self, key: str) -> str:
        """Return the first value for ``key``, or an empty string."""
        values = self._values.get(_canonical_key(key))
        return values[0] if values else ""

    def get_all(self, key: str) -> list[str]:
        """Return every value for ``key``."""
        return list(self._values.get(_canonical_key(key), ()))

    def set(self, key: str, value: str) -> None:
        """Replace the values for ``key`` with ``value``."""
        self._values[_canonical_key(key)] = [str(value)]

    def add(self, key: str, value: str) -> None:
        """Append ``value`` to the values for ``key``."""
        self._values.setdefault(_canonical_key(key), []).append(str(value))

    def delete(self, key: str) -> None:
        """Remove every value for ``key``."""
        self._values.pop(_canonical_key(key), None)

    def copy(self) -> Headers:
        return Headers((key, list(values)) for key, values in self._values.items())

    def keys(self) -> list[str]:
        return list(self._values)

    def items(self) -> list[tuple[str, list[str]]]:
        return [(key, list(values)) for key, values in self._values.items()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and _canonical_key(key) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Headers({self._values!r})"


class NoCookieError(LookupError):
    """The named cookie is not in the request."""

    def __init__(self, name: str = "") -> None:
        super().__init__(f"named cookie not present: {name}" if name else "named cookie not present")
        self.name = name


class NotMultipartError(ValueError):
    """The request body is not a multipart form."""

    def __init__(self) -> None:
        super().__init__("request Content-Type isn't multipart/form-data")


@dataclass
class UploadedFile:
    """A file sent in a multipart form."""

    filename: str
    headers: Headers = field(default_factory=Headers)
    content: bytes | None = None
    path: str | None = None

    @property
    def size(self) -> int:
        return len(self.content) if self.content is not None else 0

    def open(self) -> BinaryIO:
        """Open the file's contents for reading."""
        if self.content is not None:
            return io.BytesIO(self.content)
        if not self.path:
            raise FileNotFoundError(f"no content for uploaded file {self.filename!r}")
        return open(self.path, "rb")


@dataclass
class MultipartForm:
    """The fields and files of a parsed multipart form."""

    value: dict[str, list[str]] = field(default_factory=dict)
    file: dict[str, list[UploadedFile]] = field(default_factory=dict)


def _parse_media_type(value: str) -> tuple[str, dict[str, str]]:
    media, _, rest = value.partition(";")
    params: dict[str, str] = {}
    for piece in rest.split(";"):
        key, sep, val = piece.partition("=")
        key = key.strip().lower()
        if not key or not sep:
            continue
        val = val.strip()
        if len(val) >= 2 and val[0] == val[-1] == '"':
            val = val[1:-1]
        params[key] = val
    return media.strip().lower(), params


def _parse_urlencoded(data: bytes | str) -> dict[str, list[str]]:
    text = data.decode("utf-8", "replace") if isinstance(data, bytes) else data
    return parse_qs(text, keep_blank_values=True, errors="replace")


def _param_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, tuple):
        return email.utils.collapse_rfc2231_value(value)
    return str(value)


def _parse_multipart(data: bytes, boundary: str) -> MultipartForm:
    head = f'Content-Type: {MULTIPART_FORM}; boundary="{boundary}"\r\n\r\n'.encode("ascii")
    message = BytesParser(policy=email.policy.HTTP).parsebytes(head + data)
    if not message.is_multipart():
        raise ValueError("malformed multipart body")
    form = MultipartForm()
    for part in message.get_payload():
        name = _param_text(part.get_param("name", header="content-disposition"))
        if not name:
            continue
        filename = _param_text(part.get_param("filename", header="content-disposition"))
        payload = part.get_payload(decode=True) or b""
        if not filename:
            form.value.setdefault(name, []).append(payload.decode("utf-8", "replace"))
            continue
        upload = UploadedFile(
            filename=posixpath.basename(filename) or filename,
            headers=Headers(part.items()),
            content=bytes(payload),
        )
        form.file.setdefault(name, []).append(upload)
    return form


def _as_stream(body: bytes | str | BinaryIO | None) -> BinaryIO:
    if body is None:
        return io.BytesIO()
    if isinstance(body, str):
        return io.BytesIO(body.encode("utf-8"))
    if isinstance(body, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(body))
    return body


class Request:
    """An incoming HTTP request."""

    def __init__(self, method: str = "GET", url: str = "/",
                 body: bytes | str | BinaryIO | None = None,
                 headers: Headers | Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
                 remote_addr: str = "") -> None:
        self.method = (method or "GET").upper()
        self.url: SplitResult = urlsplit(url)
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)
        self.body = _as_stream(body)
        self.remote_addr = remote_addr
        self.post_form: dict[str, list[str]] | None = None
        self.multipart_form: MultipartForm | None = None
        self.context_values: dict[Any, Any] = {}

    @property
    def path(self) -> str:
        return self.url.path

    @path.setter
    def path(self, value: str) -> None:
        self.url = self.url._replace(path=value)

    def query_values(self) -> dict[str, list[str]]:
        """Parse the URL's query string into lists of values per key."""
        return _parse_urlencoded(self.url.query)

    def _parse_post_body(self) -> dict[str, list[str]]:
        if self.method not in _BODY_METHODS:
            return {}
        media, _ = _parse_media_type(self.headers.get("Content-Type") or "application/octet-stream")
        if media != FORM_URLENCODED:
            return {}
        return _parse_urlencoded(self.body.read())

    def parse_form(self) -> dict[str, list[str]]:
        """Parse the body as a form and return its fields.

        Url-encoded fields are stored in ``post_form`` before a
        :class:`NotMultipartError` is raised for a body that is not multipart.
        """
        if self.post_form is None:
            self.post_form = self._parse_post_body()
        if self.multipart_form is not None:
            return self.post_form
        media, params = _parse_media_type(self.headers.get("Content-Type"))
        if media != MULTIPART_FORM:
            raise NotMultipartError()
        boundary = params.get("boundary")
        if not boundary:
            raise ValueError("no multipart boundary param in Content-Type")
        form = _parse_multipart(self.body.read(), boundary)
        self.multipart_form = form
        for key, values in form.value.items():
            self.post_form.setdefault(key, []).extend(values)
        return self.post_form

    def cookie(self, name: str) -> str:
        """Return the value of the first cookie called ``name``."""
        for line in self.headers.get_all("Cookie"):
            for piece in line.split(";"):
                piece = piece.strip()
                if not piece:
                    continue
                key, _, value = piece.partition("=")
                if key.strip() != name:
                    continue
                value = value.strip()
                if len(value) >= 2 and value[0] == value[-1] == '"':
                    value = value[1:-1]
                return value
        raise NoCookieError(name)


class Response:
    """A buffered HTTP response that records what is written to it."""

    def __init__(self) -> None:
        self.headers = Headers()
        self.status = 200
        self.size = -1
        self.body = bytearray()
        self.sent_headers: Headers | None = None

    @property
    def written(self) -> bool:
        """Tell whether the status line and headers have gone out."""
        return self.size != -1

    def write_header(self, code: int) -> None:
        """Set the status code unless the headers were already sent."""
        if code > 0 and self.status != code:
            if self.written:
                debug_print("[WARNING] Headers were already written. "
                            "Wanted to override status code %d with %d", self.status, code)
                return
            self.status = code

    def write_header_now(self) -> None:
        """Send the status and headers if that has not happened yet."""
        if not self.written:
            self.size = 0
            self.sent_headers = self.headers.copy()

    def write(self, data: bytes | str) -> int:
        """Append data to the body, sending the headers first."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.write_header_now()
        self.body.extend(data)
        self.size += len(data)
        return len(data)