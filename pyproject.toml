[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "oura"
version = "0.1.0"
description = "Event model, pipeline filters and metadata mapping for following a Cardano chain"
requires-python = ">=3.10"
dependencies = []
keywords = ["cardano", "blockchain", "pipeline", "events", "fingerprint", "metadata"]
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
    "Topic :: Internet",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["oura"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
