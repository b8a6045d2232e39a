import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import csv

from content_migrator.content_types import get_content_type
from content_migrator.models.content import ImageMapping
from content_migrator.parsers.content_normalizer import normalize_record
from content_migrator.utils.image_mappings import collect_image_mappings, write_image_mappings_csv

BASE = "https://images.example"
NOW = "2024-01-01T00:00:00.000Z"


def _rows(records, key="pages"):
    content_type = get_content_type(key)
    return [normalize_record(r, content_type, target_base=BASE, now=NOW) for r in records]


def test_single_and_list_images_are_paired():
    records = [
        {
            "slug": "a",
            "featuredImage": "https://old/one.png",
            "featuredImages": ["https://old/two.png", "https://old/three.png"],
        }
    ]
    mappings = collect_image_mappings(records, _rows(records))
    assert mappings == [
        ImageMapping(source="https://old/one.png", target=f"{BASE}/pages/one.png"),
        ImageMapping(source="https://old/two.png", target=f"{BASE}/pages/two.png"),
        ImageMapping(source="https://old/three.png", target=f"{BASE}/pages/three.png"),
    ]


def test_only_rewritable_images_are_counted():
    records = [
        {
            "slug": "a",
            "featuredImage": "https://old/one.png",
            "featuredImages": ["https://old/", "https://old/two.png", "https://old/three.png"],
        }
    ]
    mappings = collect_image_mappings(records, _rows(records))
    assert len(mappings) == 3
    assert mappings[0] == ImageMapping(source="https://old/one.png", target=f"{BASE}/pages/one.png")
    assert all(m.target.startswith(f"{BASE}/pages/") for m in mappings)


def test_records_without_images_produce_nothing():
    records = [{"slug": "a"}, {"slug": "b", "featuredImages": []}]
    assert collect_image_mappings(records, _rows(records)) == []


def test_rows_beyond_raw_records_are_skipped():
    records = [{"slug": "a", "featuredImage": "https://old/one.png"}]
    rows = _rows(records + [{"slug": "b", "featuredImage": "https://old/two.png"}])
    mappings = collect_image_mappings(records, rows)
    assert [m.source for m in mappings] == ["https://old/one.png"]


def test_csv_report_is_written(tmp_path):
    out = tmp_path / "nested" / "map.csv"
    pairs = [("pages", ImageMapping(source="https://old/a.png", target=f"{BASE}/pages/a.png"))]
    assert write_image_mappings_csv(pairs, str(out)) == str(out)
    with open(out, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows == [
        ["ContentType", "SourceURL", "TargetURL"],
        ["pages", "https://old/a.png", f"{BASE}/pages/a.png"],
    ]
