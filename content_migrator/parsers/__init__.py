"""
Parsers and converters used by the migration pipeline.

This subpackage exposes the image URL rewriter and the record normalizer.
"""

from .content_normalizer import decode_html_entities, normalize_record, normalize_title, strip_html
from .url_rewriter import DEFAULT_TARGET_BASE, extract_filename, rewrite_image_list, rewrite_image_url

__all__ = [
    "DEFAULT_TARGET_BASE",
    "decode_html_entities",
    "extract_filename",
    "normalize_record",
    "normalize_title",
    "rewrite_image_list",
    "rewrite_image_url",
    "strip_html",
]
