[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wachat"
version = "0.2.0"
description = "Local message store for a lightweight chat client: SQLite persistence, keyset paging, full-text search and a thumbnail cache."
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "messaging", "sqlite", "fts5", "keyset-pagination", "cache"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
wachat-bench = "wachat.bench:main"
wachat-seed = "wachat.seed:main"

[tool.hatch.build.targets.wheel]
packages = ["wachat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
