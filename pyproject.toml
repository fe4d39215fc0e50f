[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fzfkit"
version = "0.1.0"
description = "Building blocks for a terminal fuzzy finder: field tokenizer, text buffers, event box and a lightweight ANSI renderer"
requires-python = ">=3.10"
keywords = ["terminal", "tui", "fuzzy", "finder", "ansi", "tokenizer", "escape-sequences"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "regex",
    "wcwidth",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["fzfkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
