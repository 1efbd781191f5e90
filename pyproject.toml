[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cachesim"
version = "0.1.0"
description = "Cycle-level simulator for direct-mapped and four-way LRU caches in front of a byte-addressed main memory"
requires-python = ">=3.10"
dependencies = []
keywords = ["cache", "simulation", "lru", "direct-mapped", "computer-architecture", "vcd"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cachesim = "cachesim.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["cachesim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
