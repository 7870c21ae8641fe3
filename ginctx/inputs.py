"""Reading request input: path parameters, query strings, forms, headers and content negotiation."""

from __future__ import annotations

import os
import shutil
import string
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from urllib.parse import unquote_plus

from ginctx.debug import debug_print
from ginctx.messages import MultipartForm, NotMultipartError, Request, UploadedFile

_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class Param:
    """A single URL path parameter."""

    key: str
    value: str


def parse_accept(header: str) -> list[str]:
    """Split an Accept header into its media ranges, dropping parameters."""
    accepted = []
    for part in header.split(","):
        cut = part.find(";")
        if cut > 0:
            part = part[:cut]
        part = part.strip()
        if part:
            accepted.append(part)
    return accepted


def _filter_flags(content: str) -> str:
    """Return the media type without any parameters."""
    for index, char in enumerate(content):
        if char in " ;":
            return content[:index]
    return content


def _split_host_port(hostport: str) -> tuple[str, str]:
    """Split 'host:port' or '[host]:port' into host and port."""
    colon = hostport.rfind(":")
    if colon < 0:
        raise ValueError(f"missing port in address {hostport!r}")
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address {hostport!r}")
        after = end + 1
        if after == len(hostport):
            raise ValueError(f"missing port in address {hostport!r}")
        if after != colon:
            if hostport[after] == ":":
                raise ValueError(f"too many colons in address {hostport!r}")
            raise ValueError(f"missing port in address {hostport!r}")
        host = hostport[1:end]
        open_from, close_from = 1, after
    else:
        host = hostport[:colon]
        if ":" in host:
            raise ValueError(f"too many colons in address {hostport!r}")
        open_from, close_from = 0, 0
    if "[" in hostport[open_from:]:
        raise ValueError(f"unexpected '[' in address {hostport!r}")
    if "]" in hostport[close_from:]:
        raise ValueError(f"unexpected ']' in address {hostport!r}")
    return host, hostport[colon + 1:]


def _query_unescape(text: str) -> str:
    """Undo query escaping; malformed escapes give an empty string."""
    position = text.find("%")
    while position >= 0:
        digits = text[position + 1:position + 3]
        if len(digits) != 2 or not set(digits) <= _HEX_DIGITS:
            return ""
        position = text.find("%", position + 3)
    return unquote_plus(text)


def _bracket_map(values: Mapping[str, Sequence[str]], key: str) -> dict[str, str] | None:
    """Collect 'key[name]' entries into a dict, or None when there are none."""
    found: dict[str, str] = {}
    exists = False
    for name, items in values.items():
        opening = name.find("[")
        if opening < 1 or name[:opening] != key:
            continue
        rest = name[opening + 1:]
        closing = rest.find("]")
        if closing >= 1:
            exists = True
            found[rest[:closing]] = items[0]
    return found if exists else None


class RequestInputMixin:
    """Accessors for the input of the request held in ``self.request``."""

    request: Request | None = None
    params: Sequence[Param] = ()
    accepted: list[str] | None = None
    _query_cache: dict[str, list[str]] | None = None
    _form_cache: dict[str, list[str]] | None = None

    def _clear_input_caches(self) -> None:
        self._query_cache = None
        self._form_cache = None
        self.accepted = None

    def _require_request(self) -> Request:
        if self.request is None:
            raise RuntimeError("the context has no request")
        return self.request

    # Path parameters

    def param(self, key: str) -> str:
        """Return the value of the path parameter ``key``, or an empty string."""
        for item in self.params:
            if item.key == key:
                return item.value
        return ""

    def add_param(self, key: str, value: str) -> None:
        """Append a path parameter."""
        self.params = [*self.params, Param(key, value)]

    # Query string

    def _queries(self) -> dict[str, list[str]]:
        if self._query_cache is None:
            self._query_cache = self.request.query_values() if self.request is not None else {}
        return self._query_cache

    def query(self, key: str) -> str:
        """Return the first query value for ``key``, or an empty string."""
        value = self.get_query(key)
        return "" if value is None else value

    def default_query(self, key: str, default: str) -> str:
        """Return the first query value for ``key``, or ``default`` when absent."""
        value = self.get_query(key)
        return default if value is None else value

    def get_query(self, key: str) -> str | None:
        """Return the first query value for ``key``, or None when absent."""
        values = self.get_query_array(key)
        return values[0] if values else None

    def query_array(self, key: str) -> list[str]:
        """Return every query value for ``key``."""
        return self.get_query_array(key) or []

    def get_query_array(self, key: str) -> list[str] | None:
        """Return every query value for ``key``, or None when absent."""
        values = self._queries().get(key)
        return None if values is None else list(values)

    def query_map(self, key: str) -> dict[str, str]:
        """Return the 'key[name]' query entries as a dict."""
        return self.get_query_map(key) or {}

    def get_query_map(self, key: str) -> dict[str, str] | None:
        """Return the 'key[name]' query entries, or None when there are none."""
        return _bracket_map(self._queries(), key)

    # Form body

    def _forms(self) -> dict[str, list[str]]:
        if self._form_cache is None:
            request = self.request
            if request is None:
                self._form_cache = {}
                return self._form_cache
            try:
                request.parse_form()
            except NotMultipartError:
                pass
            except (ValueError, LookupError, OSError) as exc:
                debug_print("error on parse multipart form array: %s", exc)
            self._form_cache = request.post_form if request.post_form is not None else {}
        return self._form_cache

    def post_form(self, key: str) -> str:
        """Return the first form value for ``key``, or an empty string."""
        value = self.get_post_form(key)
        return "" if value is None else value

    def default_post_form(self, key: str, default: str) -> str:
        """Return the first form value for ``key``, or ``default`` when absent."""
        value = self.get_post_form(key)
        return default if value is None else value

    def get_post_form(self, key: str) -> str | None:
        """Return the first form value for ``key``, or None when absent."""
        values = self.get_post_form_array(key)
        return values[0] if values else None

    def post_form_array(self, key: str) -> list[str]:
        """Return every form value for ``key``."""
        return self.get_post_form_array(key) or []

    def get_post_form_array(self, key: str) -> list[str] | None:
        """Return every form value for ``key``, or None when absent."""
        values = self._forms().get(key)
        return None if values is None else list(values)

    def post_form_map(self, key: str) -> dict[str, str]:
        """Return the 'key[name]' form entries as a dict."""
        return self.get_post_form_map(key) or {}

    def get_post_form_map(self, key: str) -> dict[str, str] | None:
        """Return the 'key[name]' form entries, or None when there are none."""
        return _bracket_map(self._forms(), key)

    def form_file(self, name: str) -> UploadedFile:
        """Return the first uploaded file sent under ``name``."""
        request = self._require_request()
        if request.multipart_form is None:
            request.parse_form()
        files = request.multipart_form.file.get(name) if request.multipart_form else None
        if not files:
            raise LookupError(f"no such file: {name}")
        return files[0]

    def multipart_form(self) -> MultipartForm:
        """Parse and return the multipart form, including uploaded files."""
        request = self._require_request()
        request.parse_form()
        return request.multipart_form

    def save_uploaded_file(self, file: UploadedFile, dst: str | os.PathLike[str]) -> None:
        """Write an uploaded file to ``dst``, creating its directory if needed."""
        with file.open() as source:
            os.makedirs(os.path.dirname(os.fspath(dst)) or ".", mode=0o750, exist_ok=True)
            with open(dst, "wb") as target:
                shutil.copyfileobj(source, target)

    # Connection and headers

    def remote_ip(self) -> str:
        """Return the IP part of the request's remote address, or an empty string."""
        request = self._require_request()
        try:
            host, _ = _split_host_port(request.remote_addr.strip())
        except ValueError:
            return ""
        return host

    def content_type(self) -> str:
        """Return the request's media type without parameters."""
        return _filter_flags(self.get_header("Content-Type"))

    def is_websocket(self) -> bool:
        """Tell whether the request asks for a websocket upgrade."""
        return ("upgrade" in self.get_header("Connection").lower()
                and self.get_header("Upgrade").lower() == "websocket")

    def get_header(self, key: str) -> str:
        """Return the first request header value for ``key``."""
        return self._require_request().headers.get(key)

    def get_raw_data(self) -> bytes:
        """Read and return the whole request body."""
        return self._require_request().body.read()

    def cookie(self, name: str) -> str:
        """Return the unescaped value of the request cookie ``name``."""
        return _query_unescape(self._require_request().cookie(name))

    # Content negotiation

    def negotiate_format(self, *offered: str) -> str:
        """Return the first offered format the client accepts, or an empty string."""
        if not offered:
            raise ValueError("you must provide at least one offer")
        if self.accepted is None:
            header = self.get_header("Accept") if self.request is not None else ""
            self.accepted = parse_accept(header)
        if not self.accepted:
            return offered[0]
        for accepted in self.accepted:
            for offer in offered:
                matched = 0
                for accepted_char, offer_char in zip(accepted, offer):
                    if accepted_char == "*" or offer_char == "*":
                        return offer
                    if accepted_char != offer_char:
                        break
                    matched += 1
                if matched == len(accepted):
                    return offer
        return ""

    def set_accepted(self, *formats: str) -> None:
        """Set the accepted formats used by content negotiation."""
        self.accepted = list(formats)