[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jbodraid"
version = "0.1.0"
description = "Linear device over a networked JBOD block store, with a block cache and a workload runner"
requires-python = ">=3.10"
dependencies = []
keywords = ["jbod", "block device", "cache", "lfu", "storage", "linear device"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
jbodraid-tester = "jbodraid.tester:main"

[tool.hatch.build.targets.wheel]
packages = ["jbodraid"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
