"""Map marker icons looked up by category."""

from __future__ import annotations

import json
from os import PathLike
from pathlib import Path
from typing import Mapping, Union

StrPath = Union[str, "PathLike[str]"]


def load_mappings(path: StrPath) -> dict[str, str]:
    """Read a JSON object mapping category names to icon file names."""
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError("failed to unmarshal mappings: expected a JSON object")
    mappings = {category: "" if icon is None else icon for category, icon in data.items()}
    for category, icon in mappings.items():
        if not isinstance(icon, str):
            raise ValueError(f"failed to unmarshal mappings: icon for {category!r} is not a string")
    return mappings


class MarkerIndex:
    """Resolves a category to the path of its marker image."""

    def __init__(self, icons: Mapping[str, str], markers_dir: StrPath) -> None:
        self.icons = dict(icons)
        self.markers_dir = Path(markers_dir)

    @classmethod
    def from_file(cls, mappings_path: StrPath, markers_dir: StrPath) -> MarkerIndex:
        return cls(load_mappings(mappings_path), markers_dir)

    def resolve(self, category: str) -> Path:
        """Return the icon path; ValueError for an empty category, KeyError if unknown."""
        if not category:
            raise ValueError("category is required")
        icon = self.icons.get(category)
        if not icon:
            raise KeyError(category)
        return self.markers_dir / icon