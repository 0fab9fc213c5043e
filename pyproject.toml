[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hellocontest"
version = "0.1.0"
description = "Core logic for amateur radio contest logging: scoring, bandmap, call information and call history export."
requires-python = ">=3.10"
dependencies = []
keywords = ["ham radio", "amateur radio", "contest", "logging", "bandmap", "spots"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Ham Radio",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hellocontest"]

[tool.pytest.ini_options]
addopts = "-ra"
