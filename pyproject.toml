[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aevum"
version = "0.1.0"
description = "Core data model for a useful-work blockchain: compute tasks, proof of history, escrow, task markets, UTXOs, blocks and a binary wire format"
requires-python = ">=3.10"
dependencies = []
keywords = ["blockchain", "proof-of-history", "utxo", "distributed-computing", "task-market", "escrow", "blake3"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["aevum"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
