[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xv6sim"
version = "0.1.0"
description = "A model of a small x86 teaching kernel's paging, locks, system-call dispatch, shell parser and user library"
requires-python = ">=3.10"
dependencies = []
keywords = ["operating-system", "paging", "page-tables", "shell", "simulation", "education"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Operating System",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xv6-wc = "xv6sim.wc:main"

[tool.hatch.build.targets.wheel]
packages = ["xv6sim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
