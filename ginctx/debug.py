"""Debug-mode logging helpers."""

from __future__ import annotations

import dataclasses
import os
import platform
import sys
from collections.abc import Callable, Sequence
from typing import Any, TextIO

MIN_PYTHON_MINOR = 10
PREFIX = "[ginctx-debug] "

RoutePrinter = Callable[[str, str, str, int], None]


@dataclasses.dataclass
class _State:
    debugging: bool
    writer: TextIO | None = None
    error_writer: TextIO | None = None
    route_printer: RoutePrinter | None = None


_state = _State(debugging=os.environ.get("GINCTX_MODE", "debug") == "debug")


def set_debug(enabled: bool) -> None:
    """Switch debug mode on or off."""
    _state.debugging = bool(enabled)


def is_debugging() -> bool:
    """Tell whether debug mode is on."""
    return _state.debugging


def set_output(writer: TextIO | None = None,
               error_writer: TextIO | None = None) -> tuple[TextIO | None, TextIO | None]:
    """Set the debug and error streams; None means stdout and stderr.

    Returns the previous pair so it can be restored.
    """
    previous = (_state.writer, _state.error_writer)
    _state.writer = writer
    _state.error_writer = error_writer
    return previous


def set_route_printer(func: RoutePrinter | None) -> None:
    """Set a custom function that prints registered routes."""
    _state.route_printer = func


def _out() -> TextIO:
    return _state.writer if _state.writer is not None else sys.stdout


def _err() -> TextIO:
    return _state.error_writer if _state.error_writer is not None else sys.stderr


def debug_print(format: str, *args: Any) -> None:
    """Write a formatted debug line when in debug mode."""
    if not is_debugging():
        return
    if not format.endswith("\n"):
        format += "\n"
    text = format % args if args else format
    _out().write(PREFIX + text)


def debug_print_error(err: BaseException | None) -> None:
    """Write an error line when in debug mode."""
    if err is not None and is_debugging():
        _err().write(f"{PREFIX}[ERROR] {err}\n")


def _name_of_function(func: Any) -> str:
    if func is None:
        return ""
    qualname = getattr(func, "__qualname__", None) or type(func).__qualname__
    module = getattr(func, "__module__", None)
    return f"{module}.{qualname}" if module else qualname


def debug_print_route(http_method: str, absolute_path: str,
                      handlers: Sequence[Callable[..., Any]]) -> None:
    """Describe a registered route when in debug mode."""
    if not is_debugging():
        return
    count = len(handlers)
    handler_name = _name_of_function(handlers[-1] if handlers else None)
    if _state.route_printer is None:
        debug_print("%-6s %-25s --> %s (%d handlers)\n",
                    http_method, absolute_path, handler_name, count)
    else:
        _state.route_printer(http_method, absolute_path, handler_name, count)


def _parse_uint(text: str) -> int:
    if not text or not all(ch in "0123456789" for ch in text):
        raise ValueError(f"invalid unsigned integer: {text!r}")
    value = int(text)
    if value >= 1 << 64:
        raise ValueError(f"value out of range: {text!r}")
    return value


def get_min_ver(v: str) -> int:
    """Return the minor number of a version string such as 'x1.2.3'."""
    first = v.find(".")
    last = v.rfind(".")
    if first == last:
        return _parse_uint(v[first + 1:])
    return _parse_uint(v[first + 1:last])


def debug_print_warning_default() -> None:
    """Warn about the default engine's preattached middleware."""
    try:
        minor = get_min_ver(platform.python_version())
    except ValueError:
        minor = None
    if minor is not None and minor < MIN_PYTHON_MINOR:
        debug_print(f"[WARNING] Now ginctx requires Python 3.{MIN_PYTHON_MINOR}+.\n\n")
    debug_print("[WARNING] Creating an Engine instance with the Logger and Recovery "
                "middleware already attached.\n\n")


def debug_print_warning_new() -> None:
    """Warn that debug mode is on."""
    debug_print('[WARNING] Running in "debug" mode. Switch to "release" mode in production.\n'
                " - using env:\texport GINCTX_MODE=release\n"
                " - using code:\tginctx.debug.set_debug(False)\n\n")


def debug_print_warning_set_html_template() -> None:
    """Warn that setting the HTML template is not thread-safe."""
    debug_print("[WARNING] Since set_html_template() is NOT thread-safe. It should only be called\n"
                "at initialization. ie. before any route is registered or the router "
                "is listening in a socket:\n\n"
                "\trouter = default()\n"
                "\trouter.set_html_template(template)  # << good place\n\n")