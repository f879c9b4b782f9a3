"""Bounding-box search over the points-of-interest table."""

from __future__ import annotations

import math
import sqlite3
import struct
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable

ATTRIBUTION: tuple[str, ...] = (
    "Geographic Data Service, https://data.geods.ac.uk/dataset/point-of-interest-data-for-the-united-kingdom",
    "Map Markers, https://mapicons.mapsmarker.com",
)

_HEADER_SIZE = 8
_GEOMETRY_NAMES = {
    1: "Point", 2: "LineString", 3: "Polygon", 4: "MultiPoint",
    5: "MultiLineString", 6: "MultiPolygon", 7: "GeometryCollection",
}
_DIMENSION_TAGS = {(False, False): "", (True, False): " Z", (False, True): " M", (True, True): " ZM"}

_JSON_ORDER = (
    "fid", "geom", "id", "primary_name", "categories", "address", "locality",
    "postcode", "region", "country", "source", "source_record_id", "lat", "long",
    "h3_15", "easting", "northing", "lsoa21cd",
)
_OMIT_WHEN_NONE = {"primary_name", "address", "locality", "postcode", "region", "country"}

_SEARCH_SQL = """
    SELECT
    fid, geom, id, primary_name, main_category, alternate_category,
    address, locality, postcode, region, country, source, source_record_id,
    lat, long, h3_15, easting, northing, lsoa21cd
    FROM poi_uk
    WHERE lat BETWEEN ? AND ?
    AND long BETWEEN ? AND ?
"""


@dataclass(frozen=True)
class BBox:
    """A box where left and right are longitudes, bottom and top latitudes."""

    left: float
    bottom: float
    right: float
    top: float


@dataclass
class POI:
    """One point of interest as returned by a search."""

    fid: int
    geom: str
    id: str
    source: str
    source_record_id: str
    lat: float
    long: float
    h3_15: str
    easting: float
    northing: float
    lsoa21cd: str
    primary_name: str | None = None
    categories: list[str] = field(default_factory=list)
    address: str | None = None
    locality: str | None = None
    postcode: str | None = None
    region: str | None = None
    country: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON shape, leaving out absent optional fields."""
        result = {}
        for key in _JSON_ORDER:
            value = getattr(self, key)
            if key == "categories":
                if not value:
                    continue
                value = list(value)
            elif key in _OMIT_WHEN_NONE and value is None:
                continue
            result[key] = value
        return result


def parse_bbox(text: str) -> BBox:
    """Parse "left,bottom,right,top" into a BBox."""
    parts = text.split(",")
    if len(parts) != 4:
        raise ValueError("bbox must have 4 comma-separated values")
    values = []
    for part in parts:
        try:
            if "_" in part:
                raise ValueError(part)
            values.append(float(part.strip()))
        except ValueError:
            raise ValueError(f"invalid bbox value '{part}': not a valid float") from None
    return BBox(*values)


def parse_categories(text: str) -> frozenset[str] | None:
    """Parse a comma-separated category filter; None when no filter is given."""
    if text == "":
        return None
    categories = set()
    for category in text.split(","):
        category = category.strip()
        if not category:
            raise ValueError("category cannot be an empty string")
        categories.add(category.lower())
    return frozenset(categories)


def split_categories(main_category: str | None, alternate_category: str | None) -> list[str]:
    """Combine the main category with the "|"-separated alternates."""
    categories = [] if main_category is None else [main_category]
    if alternate_category is not None:
        categories.extend(cat.strip() for cat in alternate_category.split("|"))
    return categories


def has_category_match(items: Iterable[str], categories: Iterable[str]) -> bool:
    """Tell whether any item is one of the wanted categories."""
    wanted = set(categories)
    return any(item in wanted for item in items)


def _format_coordinate(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = format(Decimal(repr(value)), "f")
    return text.rstrip("0").rstrip(".") if "." in text else text


def wkb_point_to_wkt(data: bytes) -> str:
    """Decode a GeoPackage point blob (8-byte header, then WKB) into WKT."""
    if len(data) < _HEADER_SIZE:
        raise ValueError(
            "input byte slice is too short to contain a GeoPackage header and WKB data"
        )
    wkb = bytes(data[_HEADER_SIZE:])
    if len(wkb) < 5:
        raise ValueError("error unmarshaling WKB: unexpected end of data")
    if wkb[0] not in (0, 1):
        raise ValueError(f"error unmarshaling WKB: invalid byte order {wkb[0]}")
    prefix = "<" if wkb[0] else ">"

    (code,) = struct.unpack_from(prefix + "I", wkb, 1)
    offset = 9 if code & 0x20000000 else 5
    has_z = bool(code & 0x80000000)
    has_m = bool(code & 0x40000000)
    code &= 0x0FFFFFFF
    dimension, base = divmod(code, 1000)
    if dimension > 3 or base not in _GEOMETRY_NAMES:
        raise ValueError(f"error unmarshaling WKB: unsupported type {code}")
    has_z = has_z or dimension in (1, 3)
    has_m = has_m or dimension in (2, 3)
    if base != 1:
        raise ValueError(f"decoded geometry is not a Point, but a {_GEOMETRY_NAMES[base]}")

    count = 2 + has_z + has_m
    if len(wkb) < offset + 8 * count:
        raise ValueError("error unmarshaling WKB: unexpected end of data")
    coords = struct.unpack_from(prefix + "d" * count, wkb, offset)

    tag = _DIMENSION_TAGS[(has_z, has_m)]
    if all(math.isnan(c) for c in coords):
        return f"POINT{tag} EMPTY"
    return f"POINT{tag} ({' '.join(_format_coordinate(c) for c in coords)})"


def _required(value: Any, column: str, kind: type) -> Any:
    if value is None:
        raise ValueError(f"column {column} is NULL")
    return kind(value)


def _optional_text(value: Any) -> str | None:
    return None if value is None else str(value)


def search_pois(
    db: sqlite3.Connection, bbox: BBox, categories: Iterable[str] | None
) -> list[POI]:
    """Return the points inside bbox, filtered by category when a filter is given."""
    wanted = set(categories) if categories else None
    rows = db.execute(_SEARCH_SQL, (bbox.bottom, bbox.top, bbox.left, bbox.right))

    results = []
    for (fid, geom, poi_id, primary_name, main_category, alternate_category,
         address, locality, postcode, region, country, source, source_record_id,
         lat, long, h3_15, easting, northing, lsoa21cd) in rows:
        poi = POI(
            fid=_required(fid, "fid", int),
            geom=wkb_point_to_wkt(geom or b""),
            id=_required(poi_id, "id", str),
            primary_name=_optional_text(primary_name),
            categories=split_categories(main_category, alternate_category),
            address=_optional_text(address),
            locality=_optional_text(locality),
            postcode=_optional_text(postcode),
            region=_optional_text(region),
            country=_optional_text(country),
            source=_required(source, "source", str),
            source_record_id=_required(source_record_id, "source_record_id", str),
            lat=_required(lat, "lat", float),
            long=_required(long, "long", float),
            h3_15=_required(h3_15, "h3_15", str),
            easting=_required(easting, "easting", float),
            northing=_required(northing, "northing", float),
            lsoa21cd=_required(lsoa21cd, "lsoa21cd", str),
        )
        if not wanted or has_category_match(poi.categories, wanted):
            results.append(poi)
    return results