import dataclasses

import pytest

from ginctx.errors import Error, ErrorList, ErrorType


@dataclasses.dataclass
class CustomError:
    status: str
    data: str


class SomeError(Exception):
    pass


def test_error_basics():
    base = ValueError("test error")
    err = Error(base, ErrorType.PRIVATE)
    assert str(err) == str(base)
    assert err.to_json() == {"error": "test error"}

    assert err.set_type(ErrorType.PUBLIC) is err
    assert err.type == ErrorType.PUBLIC

    assert err.set_meta("some data") is err
    assert err.meta == "some data"
    assert err.to_json() == {"error": "test error", "meta": "some data"}

    assert err.marshal_json() == b'{"error":"test error","meta":"some data"}'


def test_error_map_meta():
    err = Error(ValueError("test error"), ErrorType.PRIVATE)
    err.set_meta({"status": "200", "data": "some data"})
    assert err.to_json() == {"error": "test error", "status": "200", "data": "some data"}

    err.set_meta({"error": "custom error", "status": "200", "data": "some data"})
    assert err.to_json() == {"error": "custom error", "status": "200", "data": "some data"}


def test_error_struct_meta():
    err = Error(ValueError("test error"))
    meta = CustomError(status="200", data="other data")
    err.set_meta(meta)
    assert err.to_json() == CustomError(status="200", data="other data")


def test_error_is_type():
    err = Error(ValueError("x"), ErrorType.PUBLIC)
    assert err.is_type(ErrorType.PUBLIC)
    assert not err.is_type(ErrorType.PRIVATE)
    assert err.is_type(ErrorType.ANY)


def _slice():
    return ErrorList([
        Error(ValueError("first"), ErrorType.PRIVATE),
        Error(ValueError("second"), ErrorType.PRIVATE, "some data"),
        Error(ValueError("third"), ErrorType.PUBLIC, {"status": "400"}),
    ])


def test_error_slice_filters():
    errs = _slice()
    assert errs.by_type(ErrorType.ANY) == errs
    assert str(errs.last()) == "third"
    assert errs.errors() == ["first", "second", "third"]
    assert errs.by_type(ErrorType.PUBLIC).errors() == ["third"]
    assert errs.by_type(ErrorType.PRIVATE).errors() == ["first", "second"]
    assert errs.by_type(ErrorType.PUBLIC | ErrorType.PRIVATE).errors() == ["first", "second", "third"]
    assert len(errs.by_type(ErrorType.BIND)) == 0
    assert str(errs.by_type(ErrorType.BIND)) == ""


def test_error_slice_string():
    assert str(_slice()) == (
        "Error #01: first\n"
        "Error #02: second\n"
        "     Meta: some data\n"
        "Error #03: third\n"
        "     Meta: map[status:400]\n"
    )


def test_error_slice_json():
    errs = _slice()
    assert errs.to_json() == [
        {"error": "first"},
        {"error": "second", "meta": "some data"},
        {"error": "third", "status": "400"},
    ]
    assert errs.marshal_json() == (
        b'[{"error":"first"},{"error":"second","meta":"some data"},'
        b'{"error":"third","status":"400"}]'
    )


def test_error_slice_single_and_empty():
    errs = ErrorList([Error(ValueError("first"), ErrorType.PRIVATE)])
    assert errs.to_json() == {"error": "first"}
    assert errs.marshal_json() == b'{"error":"first"}'

    empty = ErrorList()
    assert empty.last() is None
    assert empty.to_json() is None
    assert str(empty) == ""
    assert empty.errors() == []


def _causes(exc):
    while exc is not None:
        yield exc
        exc = exc.__cause__


def test_error_unwrap():
    inner = SomeError("some error")
    with pytest.raises(RuntimeError) as info:
        raise RuntimeError("wrapped") from Error(inner, ErrorType.ANY)
    chain = list(_causes(info.value))
    assert inner in chain
    assert any(isinstance(exc, SomeError) for exc in chain)