"""HTTP request handling pieces: request/response objects, input accessors, errors, debug logging and file systems."""

__version__ = "0.1.0"
__all__ = ["debug", "errors", "fs", "inputs", "messages"]