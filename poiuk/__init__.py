"""HTTP API and library for UK points of interest stored in a GeoPackage database."""

__version__ = "0.1.0"