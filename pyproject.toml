[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ndmserver"
version = "0.1.0"
description = "Threaded TCP/UDP message server with a pluggable middleware chain"
requires-python = ">=3.10"
keywords = ["server", "tcp", "udp", "middleware", "echo"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ndmserver = "ndmserver.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ndmserver"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
