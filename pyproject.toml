[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dragonkit"
version = "0.1.0"
description = "Audio building blocks: fixed-point FIR equaliser, byte FIFO, echo-canceller reference timing, plus a small domain-map JSON reader and service-registry locator messages"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "audio",
    "fir",
    "equalizer",
    "echo-cancellation",
    "fifo",
    "qmi",
    "tlv",
    "service-registry",
    "json",
]
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
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dragonkit"]

[tool.hatch.build.targets.sdist]
include = ["dragonkit", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
