[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webfuzz"
version = "2.0.0"
description = "Core engine of a web fuzzer: option validation, request templating, auto-calibration, rate control and job control"
requires-python = ">=3.11"
dependencies = []
keywords = [
    "fuzzing",
    "web",
    "http",
    "security",
    "wordlist",
    "content-discovery",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Information Technology",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["webfuzz"]

[tool.hatch.build.targets.sdist]
include = ["webfuzz", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
