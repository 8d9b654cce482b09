[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sockethub"
version = "0.1.0"
description = "Rooms, namespaces, broadcasting with acknowledgements and cluster message types for real-time socket servers"
requires-python = ">=3.10"
dependencies = []
keywords = ["socket", "realtime", "broadcast", "rooms", "namespace", "adapter", "acknowledgement"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sockethub"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
