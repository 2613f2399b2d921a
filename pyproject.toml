[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "thriftwire"
version = "0.1.0"
description = "Thrift binary and compact protocol readers and writers, with schema-less general and raw value models"
requires-python = ">=3.10"
dependencies = []
keywords = ["thrift", "serialization", "binary protocol", "compact protocol"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["thriftwire"]

[tool.pytest.ini_options]
addopts = "-ra"
