[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fssync"
version = "0.1.0"
description = "Directory mirroring manager: watches source directories and copies their changes to target directories through worker processes."
requires-python = ">=3.10"
keywords = ["sync", "mirror", "directory", "watch", "backup", "fifo"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Archiving :: Mirroring",
]
dependencies = [
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
fss-manager = "fssync.manager:main"
fss-console = "fssync.console:main"
fss-worker = "fssync.worker:main"

[tool.hatch.build.targets.wheel]
packages = ["fssync"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
