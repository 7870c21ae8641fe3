# ginctx

Building blocks for handling an HTTP request in plain Python: request and
response objects, accessors for a request's inputs (path parameters,
query strings, forms, uploads, headers, cookies, content negotiation),
typed errors that can be filtered and rendered as JSON, debug-mode
logging, and read-only file systems rooted at a directory.

It has no dependencies outside the standard library.

## Install

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Modules

### `ginctx.messages`

- `Headers`: case-insensitive header fields with several values per key
  (`get`, `get_all`, `set`, `add`, `delete`). Keys are stored in canonical
  form, so `content-type` and `Content-Type` are the same field.
- `Request(method, url, body, headers, remote_addr)`: the body may be bytes,
  text or a binary stream. `query_values()` parses the query string.
  `parse_form()` reads url-encoded bodies of POST, PUT and PATCH requests
  into `post_form` and multipart bodies into `multipart_form`. It raises
  `NotMultipartError` when the body is not multipart, after storing any
  url-encoded fields. `cookie(name)` returns a cookie's value or raises
  `NoCookieError`.
- `Response`: a buffered response. `write_header(code)` sets the status
  until the headers have gone out. `write_header_now()` sends them and keeps
  a copy in `sent_headers`. `write(data)` appends to `body`.
- `UploadedFile` and `MultipartForm` hold the parsed parts of a multipart form.

### `ginctx.inputs`

`RequestInputMixin` reads from `self.request`, `self.params` (a sequence of
`Param`) and `self.accepted`. Mix it into any object that holds a `Request`:

```python
from ginctx.inputs import RequestInputMixin
from ginctx.messages import Request


class Inputs(RequestInputMixin):
    def __init__(self, request):
        self.request = request


request = Request(
    method="POST",
    url="/items?page=2&ids[a]=1&ids[b]=2",
    body="name=alice",
    headers={"Content-Type": "application/x-www-form-urlencoded"},
)
inputs = Inputs(request)

inputs.query("page")                  # '2'
inputs.default_query("size", "10")    # '10'
inputs.get_query("missing")           # None
inputs.query_map("ids")               # {'a': '1', 'b': '2'}
inputs.post_form("name")              # 'alice'
inputs.content_type()                 # 'application/x-www-form-urlencoded'
```

It also offers:

- path parameters: `param`, `add_param`
- form arrays and maps: `post_form_array`, `post_form_map`, and their
  `get_` forms, which return `None` when a key is absent
- uploads: `form_file`, `multipart_form`, `save_uploaded_file`
- connection and headers: `remote_ip`, `get_header`, `is_websocket`,
  `get_raw_data`, `cookie` (query-unescaped)
- content negotiation: `negotiate_format(*offered)` returns the first offer
  that the Accept header (or `set_accepted(...)`) allows, with `*` as a
  wildcard. It returns an empty string when nothing matches and raises
  `ValueError` when called with no offers.

`parse_accept(header)` splits an Accept header into media ranges and drops
their parameters.

### `ginctx.errors`

```python
from ginctx.errors import Error, ErrorList, ErrorType

errors = ErrorList([
    Error(ValueError("bad input")).set_type(ErrorType.PUBLIC),
    Error(RuntimeError("internal"), meta={"status": "500"}),
])
errors.by_type(ErrorType.PUBLIC).errors()  # ['bad input']
errors.marshal_json()
# b'[{"error":"bad input"},{"error":"internal","status":"500"}]'
print(errors)
# Error #01: bad input
# Error #02: internal
#      Meta: map[status:500]
```

`Error` is an exception that wraps another error. It has a type (`ErrorType`
bit flags) and optional metadata. A mapping as metadata is merged into the
JSON form. A dataclass as metadata is returned as the JSON form itself. Any
other metadata appears under `"meta"`.

### `ginctx.debug`

Debug output is on unless the `GINCTX_MODE` environment variable is set to
something other than `debug`. Use `set_debug(False)` to turn it off at run
time. The module provides:

- `debug_print` and `debug_print_error`, which write lines prefixed with
  `[ginctx-debug] `
- `debug_print_route`, which describes a route; a custom printer can be set
  with `set_route_printer`
- three fixed warning messages
- `set_output(writer, error_writer)`, which redirects the output and returns
  the previous pair
- `get_min_ver`, which extracts the minor number from a version string

### `ginctx.fs`

`directory(root, list_directory)` returns a `DirFileSystem`, or, when
`list_directory` is false, an `OnlyFilesFileSystem` whose entries report no
children. `open(name)` resolves a slash-separated name below the root; the
name cannot escape the root. It returns a `FileEntry` with `read()` and
`readdir(count)`.

## What it does not do

There is no per-request context object that ties these pieces together, no
handler chain or middleware, no routing and no server. Nothing renders JSON,
XML, HTML or other formats into a response: `Response` only buffers the
status, headers and bytes written to it. Request bodies are not bound to
objects beyond the form and multipart parsing described above.