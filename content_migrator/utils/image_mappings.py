"""
Image URL mappings produced by a content migration.

:func:`collect_image_mappings` pairs the image URLs of the raw WordPress
records with the rewritten URLs of their normalized rows, and
:func:`write_image_mappings_csv` writes those pairs to a CSV file that can
be reviewed after the run or fed to the image copy step.
"""

from __future__ import annotations

import csv
import os
from typing import Any, Iterable, List, Mapping, Sequence, Tuple

from ..content_types import raw_featured_image, raw_featured_images
from ..models.content import ImageMapping, NormalizedRow


def collect_image_mappings(
    raw_records: Sequence[Mapping[str, Any]], rows: Sequence[NormalizedRow]
) -> List[ImageMapping]:
    """Build ``source → target`` pairs for a batch.

    Both sequences are expected in the same order.  Rows without a raw
    record at the same index are skipped.  ``featuredImages`` are paired by
    position over the shorter of the two lists, and only where both sides
    hold a URL.
    """
    mappings: List[ImageMapping] = []
    for index, row in enumerate(rows):
        if index >= len(raw_records):
            continue
        raw = raw_records[index]

        source_image = raw_featured_image(raw)
        if row.featured_image and source_image:
            mappings.append(ImageMapping(source=source_image, target=row.featured_image))

        source_images = raw_featured_images(raw)
        if row.featured_images and source_images:
            for source, target in zip(source_images, row.featured_images):
                if source and target:
                    mappings.append(ImageMapping(source=source, target=target))
    return mappings


def write_image_mappings_csv(
    mappings: Iterable[Tuple[str, ImageMapping]], out_path: str = "reports/image_url_map.csv"
) -> str:
    """Write ``(content type, mapping)`` pairs to ``out_path``.

    Parameters
    ----------
    mappings:
        Iterable of ``(content type key, ImageMapping)`` tuples.
    out_path:
        Location of the CSV file.  The parent directory is created
        automatically.

    Returns
    -------
    str
        The path of the generated CSV file.
    """
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["ContentType", "SourceURL", "TargetURL"])
        for content_type, mapping in mappings:
            writer.writerow([content_type, mapping.source, mapping.target])
    return out_path
