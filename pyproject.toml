[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "treds"
version = "0.1.0"
description = "In-memory key-value store with ordered keys, prefix scans, sorted sets, lists, sets and hashes"
requires-python = ">=3.10"
dependencies = [
    "sortedcontainers",
]
keywords = ["key-value", "database", "in-memory", "sorted-set", "prefix-scan"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["treds"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
