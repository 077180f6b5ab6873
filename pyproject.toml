[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shapefusion"
version = "0.1.0"
description = "Read, edit and write Marathon Sounds files, and render 8-bit Shapes bitmap pixels to RGB images"
requires-python = ">=3.10"
dependencies = []
keywords = ["marathon", "sounds", "shapes", "game-data", "editor", "aiff", "wav"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Environment :: Console",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: Multimedia :: Sound/Audio :: Editors",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
shapefusion = "shapefusion.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["shapefusion"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
