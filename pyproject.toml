[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "iavl"
version = "0.1.0"
description = "Building blocks of a Merkle AVL+ tree: nodes, balancing, hashing, node encoding, iteration and key formats"
requires-python = ">=3.10"
keywords = ["avl", "merkle", "tree", "key-value", "encoding", "varint"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["iavl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
