"""
Normalization of raw WordPress records into uniform rows.

WordPress returns slightly different shapes depending on the content type
and on the age of the custom fields plugin that produced them.  The helpers
here project any of those shapes onto :class:`NormalizedRow`:

* titles lose their markup and have their character references decoded,
* image fields are read from their current or legacy names and rewritten
  to the image bucket,
* GMT timestamps are preferred, falling back to the time of the run,
* type-specific columns are extracted through the content type table.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..content_types import (
    ContentType,
    extract_extras,
    first_present,
    raw_featured_image,
    raw_featured_images,
    unwrap_rendered,
)
from ..models.content import NormalizedRow
from ..utils.errors import NormalizationError
from .url_rewriter import DEFAULT_TARGET_BASE, rewrite_image_list, rewrite_image_url

TAG_RE = re.compile(r"<[^>]*>")
DECIMAL_REF_RE = re.compile(r"&#([0-9]+);")
HEX_REF_RE = re.compile(r"&#[xX]([0-9a-fA-F]+);")

# Applied in this order, after numeric references.
NAMED_ENTITIES: Tuple[Tuple[str, str], ...] = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&apos;", "'"),
)

CREATED_FIELDS = ("date_gmt", "created")
MODIFIED_FIELDS = ("modified_gmt", "modified")


def strip_html(value: str) -> str:
    return TAG_RE.sub("", value or "")


def _char_ref(match: "re.Match[str]", base: int) -> str:
    try:
        return chr(int(match.group(1), base))
    except (ValueError, OverflowError):
        # Out of the Unicode range: keep the reference as written.
        return match.group(0)


def decode_html_entities(value: str) -> str:
    """Decode numeric references, then the five XML entities in turn.

    Each replacement sees the output of the previous one, so ``&amp;lt;``
    becomes ``<``.
    """
    text = DECIMAL_REF_RE.sub(lambda m: _char_ref(m, 10), value or "")
    text = HEX_REF_RE.sub(lambda m: _char_ref(m, 16), text)
    for entity, char in NAMED_ENTITIES:
        text = text.replace(entity, char)
    return text


def normalize_title(value: Any) -> str:
    """Turn a WordPress title into plain text.

    Tags are stripped before entities are decoded so an encoded
    ``&lt;script&gt;`` ends up as text rather than being removed as a tag.
    """
    rendered = unwrap_rendered(value)
    if not isinstance(rendered, str):
        return ""
    return decode_html_entities(strip_html(rendered)).strip()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_record(
    record: Mapping[str, Any],
    content_type: ContentType,
    *,
    target_base: str = DEFAULT_TARGET_BASE,
    now: Optional[str] = None,
) -> NormalizedRow:
    """Project one raw WordPress record onto a :class:`NormalizedRow`.

    :param record: The decoded JSON object returned by the REST API.
    :param content_type: Descriptor of the record's content type.
    :param target_base: Base URL of the image bucket.
    :param now: Timestamp used when the record has no GMT dates; defaults
        to the current UTC time.
    :raises NormalizationError: if the record has no usable slug.
    """
    fallback = now or utc_now_iso()
    folder = content_type.folder
    try:
        return NormalizedRow(
            slug=record.get("slug") or "",
            status=record.get("status") or "",
            type=record.get("type") or "",
            title=normalize_title(record.get("title")),
            featured_image=rewrite_image_url(raw_featured_image(record), folder, target_base),
            featured_images=rewrite_image_list(raw_featured_images(record), folder, target_base),
            created=first_present(record, CREATED_FIELDS) or fallback,
            modified=first_present(record, MODIFIED_FIELDS) or fallback,
            extras=extract_extras(record, content_type),
        )
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise NormalizationError(
            f"Cannot normalize {content_type.key} record id={record.get('id')!r}: invalid {fields}",
            e,
        ) from e
