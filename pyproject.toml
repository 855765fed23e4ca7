[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "yearning"
version = "0.1.0"
description = "Building blocks for a SQL audit platform: records, settings, password hashing, tokens, notifications, query result formatting and approval rules"
requires-python = ">=3.11"
keywords = ["sql", "audit", "mysql", "workflow", "jwt", "notification", "msgpack"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database :: Front-Ends",
]
dependencies = [
    "cryptography",
    "pyjwt",
    "msgpack",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["yearning"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
