[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "outdoornav"
version = "0.1.0"
description = "Outdoor navigation building blocks: GPS-to-UTM localization, virtual force field control and map building from point clouds"
requires-python = ">=3.10"
dependencies = []
keywords = ["robotics", "navigation", "gps", "utm", "vff", "point-cloud", "grid-map", "lifecycle"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
outdoor-maps-builder = "outdoornav.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["outdoornav"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
