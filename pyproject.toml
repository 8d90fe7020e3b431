[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "darwin"
version = "0.1.0"
description = "World simulation and game server for a multiplayer planet-eating game"
requires-python = ">=3.10"
dependencies = []
keywords = ["game", "simulation", "physics", "server", "multiplayer"]
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
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
darwin-server = "darwin.server:main"

[tool.hatch.build.targets.wheel]
packages = ["darwin"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
