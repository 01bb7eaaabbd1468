[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "parlab"
version = "0.1.0"
description = "Image filter pipelines, a sinoscope renderer and variant checks for parallel programming labs"
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = [
    "image-processing",
    "filters",
    "pipeline",
    "threads",
    "sinoscope",
    "png",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics",
    "Topic :: Education",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
parlab-pipeline = "parlab.pipeline_cli:main"
parlab-sinoscope = "parlab.sinoscope_cli:main"

[tool.hatch.build.targets.wheel]
packages = ["parlab"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
