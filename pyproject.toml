[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "respot"
version = "0.1.0"
description = "Building blocks for a Spotify Connect style player: paged track lists, audio source switching, pipe output, Vorbis metadata and zeroconf credential hand-over"
requires-python = ">=3.10"
keywords = ["audio", "player", "spotify-connect", "zeroconf", "vorbis", "pcm"]
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
    "Topic :: Multimedia :: Sound/Audio :: Players",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["respot"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
