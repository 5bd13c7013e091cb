[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xutilkit"
version = "0.1.0"
description = "Levelled background logging with rotating file writers, small list, math, time and conversion helpers, and field copying between dataclasses."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "log-rotation", "utilities", "dataclasses", "field-copy"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["xutilkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
