[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "poiuk"
version = "0.1.0"
description = "HTTP API serving UK points of interest from a GeoPackage database"
requires-python = ">=3.10"
keywords = ["poi", "geopackage", "gis", "uk", "http", "api", "flask"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Scientific/Engineering :: GIS",
]
dependencies = [
    "flask",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
poiuk = "poiuk.app:main"

[tool.hatch.build.targets.wheel]
packages = ["poiuk"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
