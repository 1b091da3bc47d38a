[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pigeonrelay"
version = "0.1.0"
description = "Relayer core that moves messages, signatures and gravity batches between a Paloma validator and EVM chains"
requires-python = ">=3.11"
keywords = [
    "relayer",
    "validator",
    "evm",
    "paloma",
    "gravity",
    "mev",
    "bloxroute",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Typing :: Typed",
]
dependencies = [
    "httpx",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "respx",
]

[tool.hatch.build.targets.wheel]
packages = ["pigeonrelay"]

[tool.hatch.build.targets.sdist]
include = [
    "pigeonrelay",
    "tests",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
