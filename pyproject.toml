[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fiberkit"
version = "0.1.0"
description = "Cooperative fibers, a segmented byte array with varint encoding, network address helpers and a file-descriptor registry"
requires-python = ">=3.10"
keywords = ["fiber", "coroutine", "bytearray", "varint", "zigzag", "address", "scheduler"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]
dependencies = [
    "psutil",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
fiberkit-demo = "fiberkit.simple_scheduler:main"

[tool.hatch.build.targets.wheel]
packages = ["fiberkit"]

[tool.pytest.ini_options]
addopts = "-ra"
