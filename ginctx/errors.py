"""Errors attached to a request context, and lists of them."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from enum import IntFlag
from typing import Any


class ErrorType(IntFlag):
    """Bit flags that classify an attached error."""

    PRIVATE = 1 << 0
    PUBLIC = 1 << 1
    NU = 2
    RENDER = 1 << 62
    BIND = 1 << 63
    ANY = (1 << 64) - 1


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Error):
        return value.to_json()
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def _marshal(value: Any) -> bytes:
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    )
    for raw, escaped in (
        ("&", "\\u0026"),
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(raw, escaped)
    return text.encode("utf-8")


def _format_value(value: Any) -> str:
    """Render a value the way a generic '%v' verb would."""
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda item: str(item[0]))
        inner = " ".join(f"{_format_value(k)}:{_format_value(v)}" for k, v in items)
        return f"map[{inner}]"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(v) for v in value) + "]"
    return str(value)


class Error(Exception):
    """An error with a type and optional metadata, wrapping another error."""

    def __init__(self, err: BaseException | Any, type: ErrorType | int = ErrorType.PRIVATE,
                 meta: Any = None) -> None:
        super().__init__(err)
        self.err = err
        self.type = type
        self.meta = meta
        if isinstance(err, BaseException):
            self.__cause__ = err

    def set_type(self, flags: ErrorType | int) -> Error:
        """Set the error's type and return the error."""
        self.type = flags
        return self

    def set_meta(self, data: Any) -> Error:
        """Set the error's metadata and return the error."""
        self.meta = data
        return self

    def to_json(self) -> Any:
        """Return a JSON-ready value describing the error."""
        data: dict[str, Any] = {}
        meta = self.meta
        if meta is not None:
            if dataclasses.is_dataclass(meta) and not isinstance(meta, type):
                return meta
            if isinstance(meta, Mapping):
                data.update({str(k): v for k, v in meta.items()})
            else:
                data["meta"] = meta
        data.setdefault("error", str(self))
        return data

    def marshal_json(self) -> bytes:
        """Serialize the error's JSON form."""
        return _marshal(self.to_json())

    def is_type(self, flags: ErrorType | int) -> bool:
        """Tell whether the error's type shares any bit with ``flags``."""
        return (int(self.type) & int(flags)) > 0

    def __str__(self) -> str:
        return str(self.err)


class ErrorList(list):
    """A list of :class:`Error` values."""

    def by_type(self, typ: ErrorType | int) -> ErrorList:
        """Return the errors whose type matches ``typ``."""
        if not self:
            return ErrorList()
        if int(typ) == int(ErrorType.ANY):
            return self
        return ErrorList(msg for msg in self if msg.is_type(typ))

    def last(self) -> Error | None:
        """Return the last error, or None when the list is empty."""
        return self[-1] if self else None

    def errors(self) -> list[str]:
        """Return the messages of all errors."""
        return [str(msg) for msg in self]

    def to_json(self) -> Any:
        """Return None, a single error's JSON, or a list of them."""
        if not self:
            return None
        if len(self) == 1:
            return self[0].to_json()
        return [msg.to_json() for msg in self]

    def marshal_json(self) -> bytes:
        """Serialize the list's JSON form."""
        return _marshal(self.to_json())

    def __str__(self) -> str:
        lines = []
        for number, msg in enumerate(self, start=1):
            lines.append(f"Error #{number:02d}: {msg.err}\n")
            if msg.meta is not None:
                lines.append(f"     Meta: {_format_value(msg.meta)}\n")
        return "".join(lines)