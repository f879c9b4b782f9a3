"""Reference data: category counts and last-update time of the dataset."""

from __future__ import annotations

import logging
import sqlite3
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from poiuk.search import ATTRIBUTION, split_categories

logger = logging.getLogger(__name__)


@dataclass
class RefData:
    """Summary of the dataset served by the ref-data endpoint."""

    count: int
    last_updated: str
    categories: dict[str, int]
    attribution: list[str] = field(default_factory=lambda: list(ATTRIBUTION))

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "last_updated": self.last_updated,
            "categories": dict(sorted(self.categories.items())),
            "attribution": list(self.attribution),
        }


def precompute_categories(db: sqlite3.Connection) -> tuple[dict[str, int], int]:
    """Count each category over all points; also return the number of points."""
    logger.info("Pre-computing POI categories...")
    counts: Counter[str] = Counter()
    total = 0
    for main_category, alternate_category in db.execute(
        "SELECT main_category, alternate_category FROM poi_uk"
    ):
        counts.update(split_categories(main_category, alternate_category))
        total += 1
    logger.info(
        "Discovered %d distinct categories from %d points of interest",
        len(counts),
        total,
    )
    return dict(counts), total


def retrieve_last_updated(db: sqlite3.Connection) -> str:
    """Read the last-change timestamp from gpkg_contents; "unknown" when blank."""
    row = db.execute("SELECT last_change FROM gpkg_contents").fetchone()
    if row is None:
        raise LookupError("error retrieving timestamp: no rows in result set")
    if row[0] is None:
        raise ValueError("error retrieving timestamp: last_change is NULL")
    timestamp = str(row[0])
    if timestamp == "":
        return "unknown"
    logger.info("Last updated timestamp in db: %s", timestamp)
    return timestamp


def load_ref_data(db: sqlite3.Connection) -> RefData:
    """Compute the full reference data from the database."""
    categories, count = precompute_categories(db)
    last_updated = retrieve_last_updated(db)
    return RefData(count=count, last_updated=last_updated, categories=categories)