"""
Declarative table of the content types handled by the migration.

Every content type is described once here: the WordPress REST route it is
read from, the table it is written to, the image folder its media lives in
and the type-specific columns it carries.  The fetcher, the normalizer and
the upsert engines iterate over these descriptors instead of hard-coding a
pipeline per type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .utils.errors import ConfigurationError

FEATURED_IMAGE_FIELDS: Tuple[str, ...] = ("featuredImage", "featured_image")
FEATURED_IMAGES_FIELDS: Tuple[str, ...] = ("featuredImages", "featured_images")


@dataclass(frozen=True)
class ExtraField:
    """A type-specific column and the remote field names it may come from.

    ``candidates`` are tried in order and the first non-empty value wins.
    ``rich_text`` marks WordPress ``{"rendered": ...}`` objects that must be
    unwrapped to their rendered string.
    """

    column: str
    candidates: Tuple[str, ...]
    rich_text: bool = False


@dataclass(frozen=True)
class ContentType:
    key: str
    table: str
    folder: str
    extra_fields: Tuple[ExtraField, ...] = ()

    @property
    def extra_columns(self) -> List[str]:
        return [field.column for field in self.extra_fields]

    def endpoint(self, api_base: str, page_size: int = 100, embed: bool = False) -> str:
        """Build the collection URL for this type.

        Only one page is requested; sets larger than ``page_size`` are
        truncated by the API.
        """
        url = f"{api_base.rstrip('/')}/{self.key}?per_page={page_size}"
        if embed:
            url += "&_embed"
        return url


CONTENT_TYPES: Tuple[ContentType, ...] = (
    ContentType(
        key="pages",
        table="pages",
        folder="pages",
        extra_fields=(
            ExtraField("reactComponent", ("reactComponent", "react_component", "component")),
        ),
    ),
    ContentType(key="building-blocks", table="building_blocks", folder="building-blocks"),
    ContentType(
        key="animations",
        table="animations",
        folder="animations",
        extra_fields=(
            ExtraField("animationLink", ("animationLink", "animation_link", "link")),
        ),
    ),
    ContentType(
        key="creative-coding",
        table="creative_coding",
        folder="creative-coding",
        extra_fields=(ExtraField("content", ("content", "content_rendered"), rich_text=True),),
    ),
    ContentType(
        key="audio-projects",
        table="audio_projects",
        folder="audio-projects",
        extra_fields=(ExtraField("content", ("content", "content_rendered"), rich_text=True),),
    ),
)

_BY_KEY: Dict[str, ContentType] = {ct.key: ct for ct in CONTENT_TYPES}


def get_content_type(key: str) -> ContentType:
    try:
        return _BY_KEY[key]
    except KeyError:
        known = ", ".join(_BY_KEY)
        raise ConfigurationError(f"Unknown content type '{key}'. Expected one of: {known}") from None


def select_content_types(keys: Optional[Iterable[str]] = None) -> List[ContentType]:
    """Return the requested content types in table order.

    ``None`` or an empty selection means every type.  Unknown keys raise
    :class:`ConfigurationError`.
    """
    if not keys:
        return list(CONTENT_TYPES)
    wanted = {get_content_type(key).key for key in keys}
    return [ct for ct in CONTENT_TYPES if ct.key in wanted]


def unwrap_rendered(value: Any) -> Any:
    """Return ``value["rendered"]`` for WordPress rich-text objects.

    Plain values are returned unchanged; a rich-text object without a
    rendered string becomes ``None``.
    """
    if isinstance(value, Mapping):
        return value.get("rendered")
    return value


def first_present(record: Mapping[str, Any], candidates: Iterable[str]) -> Any:
    """Return the first non-empty value among ``candidates`` in ``record``."""
    for name in candidates:
        value = record.get(name)
        if value is None or value == "" or value == [] or value == {}:
            continue
        return value
    return None


def raw_featured_image(record: Mapping[str, Any]) -> Optional[str]:
    value = first_present(record, FEATURED_IMAGE_FIELDS)
    return value if isinstance(value, str) else None


def raw_featured_images(record: Mapping[str, Any]) -> List[Any]:
    value = first_present(record, FEATURED_IMAGES_FIELDS)
    return list(value) if isinstance(value, list) else []


def extract_extras(record: Mapping[str, Any], content_type: ContentType) -> Dict[str, Optional[str]]:
    extras: Dict[str, Optional[str]] = {}
    for field in content_type.extra_fields:
        if field.rich_text:
            value = None
            for name in field.candidates:
                value = unwrap_rendered(record.get(name))
                if value:
                    break
        else:
            value = first_present(record, field.candidates)
        extras[field.column] = value if value not in ("", None) else None
    return extras
