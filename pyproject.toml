[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "ginctx"
version = "0.1.0"
description = "Building blocks for HTTP request handling: request and response objects, input accessors, typed errors, debug logging and directory file systems."
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "web", "request", "forms", "multipart", "negotiation", "errors"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["ginctx*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
