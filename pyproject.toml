[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tilestage"
version = "0.1.0"
description = "Core of a tile-based 2D game engine: actors, scripts, collisions, projectiles, fades and scene loading"
requires-python = ">=3.10"
dependencies = []
keywords = ["game", "engine", "tiles", "sprites", "scripting", "retro"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tilestage"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
