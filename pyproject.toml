[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "sockrelay"
version = "0.1.0"
description = "Relay data between sockets, files, processes and in-memory endpoints, with line, message and JSON-RPC filters"
requires-python = ">=3.10"
dependencies = []
keywords = ["relay", "socket", "tcp", "udp", "netcat", "socat", "jsonrpc", "line-mode"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Internet",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["sockrelay*"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
