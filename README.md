# poiuk

A small Flask application that serves UK points of interest from a
GeoPackage (SQLite) database. It offers reference data about the
dataset, searches within a bounding box with an optional category
filter, and returns PNG marker icons for categories.

## Installation

```
pip install .
```

## Running the server

```
poiuk --db ./data/poi_uk.gpkg --port 8080
```

Options:

- `--db` – path to the GeoPackage database (default `./data/poi_uk.gpkg`).
- `--port` – port to listen on, on all interfaces (default `8080`).
- `--mappings` – JSON file mapping category names to icon file names
  (default `./data/markers.json`).
- `--markers` – directory holding the icon files (default `./data/markers`).

At startup the command opens the database, counts the categories and
reads the mappings file. If the database file does not exist, or any of
these steps fails, it logs the error and exits with status 1.

The database must contain a `poi_uk` table and a `gpkg_contents` table
with a `last_change` column.

## Endpoints

Every response carries `Cache-Control: public, max-age=31536000, immutable`.
Requests with an `Origin` header get `Access-Control-Allow-Origin: *`,
and CORS preflight `OPTIONS` requests are answered with `204`.

### `GET /v1/poi/ref-data`

Returns the number of points of interest, when the data was last
updated (`"unknown"` when the stored value is blank), how many times
each category occurs (main and alternate categories both count, keys
sorted by name), and the attribution for the data. All of this is
worked out once, when the server starts.

```json
{
  "count": 12345,
  "last_updated": "2024-01-01T00:00:00Z",
  "categories": {"cafe": 120, "restaurant": 98},
  "attribution": ["..."]
}
```

### `GET /v1/poi/search?bbox=LEFT,BOTTOM,RIGHT,TOP&categories=a,b`

- `bbox` is required: four comma-separated numbers giving the minimum
  longitude, minimum latitude, maximum longitude and maximum latitude.
- `categories` is optional: a comma-separated list. Entries are trimmed
  and lower-cased; a point matches if any of its categories equals one
  of them. Empty entries are rejected.

The response is `{"results": [...], "attribution": [...]}`, where
`results` is `null` when nothing matches. Each result holds `fid`,
`geom` (WKT, for example `POINT (-0.1 51.5)`), `id`, `primary_name`,
`categories`, the address fields `address`, `locality`, `postcode`,
`region` and `country`, `source`, `source_record_id`, `lat`, `long`,
`h3_15`, `easting`, `northing` and `lsoa21cd`. Optional text fields
that are empty in the database, and an empty category list, are left
out.

Bad parameters get a `400` response with an `{"error": "..."}` body;
database or geometry errors get a `500`.

### `GET /v1/poi/marker/<category>`

Returns the PNG icon mapped to the category. A category with no icon
gets a `404` with `{"error": "category not found"}`; a mapped icon whose
file is missing gets a plain-text `404`.

### `GET /healthz`

Runs a trivial query and returns `[{"name": "sql", "pass": true}]` with
status `200`, or `"pass": false` with status `503` when the database
cannot be queried.

## Using it as a library

```python
import sqlite3
from poiuk.search import parse_bbox, parse_categories, search_pois

db = sqlite3.connect("./data/poi_uk.gpkg")
bbox = parse_bbox("-0.2,51.4,0.0,51.6")
for poi in search_pois(db, bbox, parse_categories("cafe")):
    print(poi.to_dict())
```

- `poiuk.search` – `BBox`, `POI`, `parse_bbox`, `parse_categories`,
  `split_categories`, `has_category_match`, `wkb_point_to_wkt` and
  `search_pois`.
- `poiuk.refdata` – `RefData`, `precompute_categories`,
  `retrieve_last_updated` and `load_ref_data`.
- `poiuk.markers` – `load_mappings` and `MarkerIndex`, whose `resolve`
  returns the icon path for a category.
- `poiuk.app` – `create_app(db_path, mappings_path, markers_dir)` builds
  the Flask application; `main(argv=None)` is the command above.

## Limitations

The server does not compress its responses.

## Development

```
pip install -e ".[test]"
pytest
```