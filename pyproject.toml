[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cmdcore"
version = "1.0.0"
description = "Framed command protocol: packet building, format checking and command dispatch"
requires-python = ">=3.10"
dependencies = []
keywords = ["protocol", "framing", "crc", "command", "dispatch", "ipc"]
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
    "Topic :: Communications",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cmdcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
