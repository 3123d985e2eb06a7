[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ueventdiag"
version = "0.1.0"
description = "Turn Linux kernel uevents into hardware diagnostic statuses"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["uevent", "netlink", "diagnostics", "udev", "camera", "monitoring"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
ueventdiag-publisher = "ueventdiag.publisher:main"
ueventdiag-printer = "ueventdiag.printer:main"

[tool.hatch.build.targets.wheel]
packages = ["ueventdiag"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
