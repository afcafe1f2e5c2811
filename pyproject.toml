[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evolvechain"
version = "0.1.0"
description = "Rollup node helpers: configuration, the ANDE token-duality precompile, and MEV detection, auction and distribution bookkeeping"
requires-python = ">=3.10"
dependencies = []
keywords = ["evm", "rollup", "precompile", "mev", "auction", "blockchain"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["evolvechain"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
