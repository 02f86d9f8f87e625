[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scpilink"
version = "1.0.0"
description = "A small SCPI-over-TCP client, command-line shell and demonstration measurement server"
requires-python = ">=3.10"
dependencies = []
keywords = ["scpi", "tcp", "instrument", "measurement", "client", "server"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
scpilink = "scpilink.app:main"
scpilink-server = "scpilink.server:main"

[tool.hatch.build.targets.wheel]
packages = ["scpilink"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
