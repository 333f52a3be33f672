[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nitcbase"
version = "0.1.0"
description = "The storage layers of a small block-based relational database engine: disk, buffer pool, record blocks, catalogs and B+ tree indexes"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "database",
    "relational",
    "b+tree",
    "buffer-manager",
    "catalog",
    "storage-engine",
    "education",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["nitcbase"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
