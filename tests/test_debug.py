import io

import pytest

from ginctx import debug


@pytest.fixture
def capture():
    buffer = io.StringIO()
    previous_mode = debug.is_debugging()
    previous = debug.set_output(buffer, buffer)
    yield buffer
    debug.set_output(*previous)
    debug.set_debug(previous_mode)
    debug.set_route_printer(None)


def handler_name_test(c):
    pass


def _split_route_line(line):
    """Split a route line into its head, the handler's short name and the count part."""
    head, _, tail = line.partition(" --> ")
    name, _, count = tail.rpartition(" (")
    return head, name.rsplit(".", 1)[-1], count


def test_is_debugging(capture):
    debug.set_debug(True)
    assert debug.is_debugging() is True
    debug.set_debug(False)
    assert debug.is_debugging() is False


def test_debug_print(capture):
    debug.set_debug(False)
    debug.debug_print("DEBUG this!")
    debug.set_debug(True)
    debug.debug_print("these are %d %s", 2, "error messages")
    assert capture.getvalue() == "[ginctx-debug] these are 2 error messages\n"


def test_debug_print_error(capture):
    debug.set_debug(True)
    debug.debug_print_error(None)
    debug.debug_print_error(ValueError("this is an error"))
    assert capture.getvalue() == "[ginctx-debug] [ERROR] this is an error\n"


def test_debug_print_error_silent_outside_debug(capture):
    debug.set_debug(False)
    debug.debug_print_error(ValueError("this is an error"))
    assert capture.getvalue() == ""


def test_debug_print_routes(capture):
    debug.set_debug(True)
    debug.debug_print_route("GET", "/path/to/route/:param", [lambda c: None, handler_name_test])
    output = capture.getvalue()
    assert output.count("\n") == 1
    assert _split_route_line(output) == (
        "[ginctx-debug] GET    /path/to/route/:param    ",
        "handler_name_test",
        "2 handlers)\n",
    )


def test_debug_print_route_func(capture):
    def printer(http_method, absolute_path, handler_name, nu_handlers):
        capture.write("[ginctx-debug] %-6s %-40s --> %s (%d handlers)\n"
                      % (http_method, absolute_path, handler_name, nu_handlers))

    debug.set_route_printer(printer)
    debug.set_debug(True)
    debug.debug_print_route("GET", "/path/to/route/:param1/:param2",
                            [lambda c: None, handler_name_test])
    output = capture.getvalue()
    assert output.count("\n") == 1
    assert _split_route_line(output) == (
        "[ginctx-debug] GET    /path/to/route/:param1/:param2          ",
        "handler_name_test",
        "2 handlers)\n",
    )


def test_debug_print_warning_set_html_template(capture):
    debug.set_debug(True)
    debug.debug_print_warning_set_html_template()
    assert capture.getvalue() == (
        "[ginctx-debug] [WARNING] Since set_html_template() is NOT thread-safe. "
        "It should only be called\n"
        "at initialization. ie. before any route is registered or the router is "
        "listening in a socket:\n\n"
        "\trouter = default()\n"
        "\trouter.set_html_template(template)  # << good place\n\n"
    )


def test_debug_print_warning_default(capture):
    debug.set_debug(True)
    debug.debug_print_warning_default()
    assert capture.getvalue() == (
        "[ginctx-debug] [WARNING] Creating an Engine instance with the Logger and "
        "Recovery middleware already attached.\n\n"
    )


def test_debug_print_warning_new(capture):
    debug.set_debug(True)
    debug.debug_print_warning_new()
    assert capture.getvalue() == (
        '[ginctx-debug] [WARNING] Running in "debug" mode. Switch to "release" mode in production.\n'
        " - using env:\texport GINCTX_MODE=release\n"
        " - using code:\tginctx.debug.set_debug(False)\n\n"
    )


def test_get_min_ver():
    with pytest.raises(ValueError):
        debug.get_min_ver("go1")
    assert debug.get_min_ver("go1.1") == 1
    assert debug.get_min_ver("go1.1.1") == 1
    with pytest.raises(ValueError):
        debug.get_min_ver("go1.1.1.1")