[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "motohses"
version = "0.0.1"
description = "Asyncio client and local mock server for the HSES (High Speed Ethernet Server) robot controller UDP protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["hses", "robot", "udp", "industrial", "mock-server", "asyncio"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Intended Audience :: Manufacturing",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
    "Topic :: Software Development :: Testing :: Mocking",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
motohses-mock = "motohses.server:main"

[tool.hatch.build.targets.wheel]
packages = ["motohses"]

[tool.hatch.build.targets.sdist]
include = ["motohses", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
