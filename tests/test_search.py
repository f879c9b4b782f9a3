import math
import sqlite3
import struct

import pytest

from poiuk.search import (
    ATTRIBUTION,
    BBox,
    POI,
    has_category_match,
    parse_bbox,
    parse_categories,
    search_pois,
    split_categories,
    wkb_point_to_wkt,
)

HEADER = b"GP\x00\x01" + struct.pack("<i", 4326)


def point_blob(x, y):
    return HEADER + struct.pack("<BIdd", 1, 1, x, y)


def make_db():
    db = sqlite3.connect(":memory:")
    db.execute(
        "CREATE TABLE poi_uk (fid INTEGER PRIMARY KEY, geom BLOB, id TEXT, "
        "primary_name TEXT, main_category TEXT, alternate_category TEXT, "
        "address TEXT, locality TEXT, postcode TEXT, region TEXT, country TEXT, "
        "source TEXT, source_record_id TEXT, lat REAL, long REAL, h3_15 TEXT, "
        "easting REAL, northing REAL, lsoa21cd TEXT)"
    )
    return db


def insert(db, fid, lat, long, main=None, alt=None, name=None, source="src"):
    db.execute(
        "INSERT INTO poi_uk VALUES (?, ?, ?, ?, ?, ?, NULL, NULL, NULL, NULL, NULL, "
        "?, ?, ?, ?, ?, ?, ?, ?)",
        (fid, point_blob(long, lat), f"id-{fid}", name, main, alt,
         source, f"rec-{fid}", lat, long, "h3", 100.0, 200.0, "E01"),
    )


def test_parse_bbox_values():
    assert parse_bbox("1,2,3,4") == BBox(1.0, 2.0, 3.0, 4.0)


def test_parse_bbox_trims_spaces():
    box = parse_bbox(" -1.5 , 50 , 0.5 , 52 ")
    assert (box.left, box.bottom, box.right, box.top) == (-1.5, 50.0, 0.5, 52.0)


@pytest.mark.parametrize("text", ["", "1,2,3", "1,2,3,4,5"])
def test_parse_bbox_wrong_count(text):
    with pytest.raises(ValueError, match="4 comma-separated"):
        parse_bbox(text)


def test_parse_bbox_invalid_value():
    with pytest.raises(ValueError, match="invalid bbox value 'x'"):
        parse_bbox("1,2,x,4")


def test_parse_categories_empty_is_none():
    assert parse_categories("") is None


def test_parse_categories_lowercases_and_trims():
    assert parse_categories("Cafe, Bar ,pub") == {"cafe", "bar", "pub"}


@pytest.mark.parametrize("text", ["a,,b", " ", "a,"])
def test_parse_categories_rejects_empty_entries(text):
    with pytest.raises(ValueError, match="empty string"):
        parse_categories(text)


def test_split_categories():
    assert split_categories("cafe", "bar | pub") == ["cafe", "bar", "pub"]
    assert split_categories(None, None) == []
    assert split_categories(None, "x") == ["x"]


def test_has_category_match_is_case_sensitive():
    assert has_category_match(["cafe", "bar"], {"bar"})
    assert not has_category_match(["Cafe"], {"cafe"})
    assert not has_category_match([], {"cafe"})


def test_wkb_point_little_endian():
    assert wkb_point_to_wkt(point_blob(-1.5, 52.25)) == "POINT (-1.5 52.25)"


def test_wkb_point_big_endian_matches_little_endian():
    big = HEADER + struct.pack(">BIdd", 0, 1, 3.0, 4.0)
    assert wkb_point_to_wkt(big) == wkb_point_to_wkt(point_blob(3.0, 4.0))


def test_wkb_point_z_iso_and_ewkb_agree():
    iso = HEADER + struct.pack("<BIddd", 1, 1001, 1.0, 2.0, 3.0)
    ewkb = HEADER + struct.pack("<BIddd", 1, 0x80000001, 1.0, 2.0, 3.0)
    assert wkb_point_to_wkt(iso) == "POINT Z (1 2 3)"
    assert wkb_point_to_wkt(ewkb) == wkb_point_to_wkt(iso)


def test_wkb_empty_point():
    blob = HEADER + struct.pack("<BIdd", 1, 1, math.nan, math.nan)
    assert wkb_point_to_wkt(blob) == "POINT EMPTY"


def test_wkb_too_short():
    with pytest.raises(ValueError, match="too short"):
        wkb_point_to_wkt(b"GP")


def test_wkb_not_a_point():
    blob = HEADER + struct.pack("<BII", 1, 2, 0)
    with pytest.raises(ValueError, match="not a Point"):
        wkb_point_to_wkt(blob)


def test_wkb_bad_byte_order():
    with pytest.raises(ValueError, match="byte order"):
        wkb_point_to_wkt(HEADER + b"\x07" + bytes(20))


def test_wkb_truncated_coordinates():
    with pytest.raises(ValueError, match="unexpected end"):
        wkb_point_to_wkt(HEADER + struct.pack("<BId", 1, 1, 1.0))


def test_poi_to_dict_omits_absent_fields():
    poi = POI(fid=1, geom="POINT (0 0)", id="a", source="s", source_record_id="r",
              lat=0.0, long=0.0, h3_15="h", easting=0.0, northing=0.0, lsoa21cd="l")
    data = poi.to_dict()
    assert "primary_name" not in data
    assert "categories" not in data
    assert data["fid"] == 1 and data["lsoa21cd"] == "l"


def test_poi_to_dict_keeps_present_fields():
    poi = POI(fid=2, geom="g", id="b", source="s", source_record_id="r",
              lat=1.0, long=2.0, h3_15="h", easting=3.0, northing=4.0, lsoa21cd="l",
              primary_name="Name", categories=["cafe"])
    data = poi.to_dict()
    assert data["primary_name"] == "Name"
    assert data["categories"] == ["cafe"]


def test_search_pois_bbox_filter():
    db = make_db()
    insert(db, 1, 51.5, -0.1, main="cafe")
    insert(db, 2, 55.0, -3.0, main="cafe")
    found = search_pois(db, parse_bbox("-1,51,1,52"), None)
    assert [p.fid for p in found] == [1]
    assert found[0].geom == wkb_point_to_wkt(point_blob(-0.1, 51.5))


def test_search_pois_category_filter():
    db = make_db()
    insert(db, 1, 51.5, 0.0, main="cafe", alt="bar | pub")
    insert(db, 2, 51.5, 0.0, main="museum")
    insert(db, 3, 51.5, 0.0)
    box = parse_bbox("-1,51,1,52")
    assert {p.fid for p in search_pois(db, box, parse_categories("PUB"))} == {1}
    assert {p.fid for p in search_pois(db, box, None)} == {1, 2, 3}
    first = next(p for p in search_pois(db, box, None) if p.fid == 1)
    assert first.categories == ["cafe", "bar", "pub"]


def test_search_pois_null_required_column():
    db = make_db()
    insert(db, 1, 51.5, 0.0, source=None)
    with pytest.raises(ValueError, match="source"):
        search_pois(db, parse_bbox("-1,51,1,52"), None)


def test_attribution_has_two_entries():
    assert len(ATTRIBUTION) == 2
    assert ATTRIBUTION[1].startswith("Map Markers")