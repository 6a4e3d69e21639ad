[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "papermake"
version = "0.1.0"
description = "Document templates with schema validation, plus a file-backed template registry with versioning and access control"
requires-python = ">=3.10"
dependencies = []
keywords = ["templates", "schema", "validation", "registry", "versioning"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["papermake"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
