[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kubegres"
version = "0.1.0"
description = "Reconciliation core for a PostgreSQL cluster operator: blocking operations, backup state and the reconcile pass"
requires-python = ">=3.10"
dependencies = []
keywords = ["postgresql", "operator", "reconciler", "replication", "backup"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Topic :: System :: Clustering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kubegres"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
