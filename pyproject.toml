[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tradematch"
version = "1.0.0"
description = "A price-time priority order matching engine with a REST order endpoint, a WebSocket broadcast server and an interactive trading client"
requires-python = ">=3.10"
keywords = ["matching engine", "order book", "trading", "limit order", "websocket"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]
dependencies = [
    "websockets",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
tradematch-server = "tradematch.server_main:main"
tradematch-client = "tradematch.client_cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tradematch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
