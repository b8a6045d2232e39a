"""
Fetching content sets from the WordPress REST API.

Each content type is read with a single ``GET`` on its collection route.
The request asks for one large page; pagination links are not followed, so
a content set larger than the page size is truncated.  Nothing is retried:
a failed request aborts the run and the whole migration is re-run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import requests

from ..content_types import ContentType
from ..models.content import ImageMapping, NormalizedRow
from ..parsers.content_normalizer import normalize_record, utc_now_iso
from ..parsers.url_rewriter import DEFAULT_TARGET_BASE
from ..utils.errors import FetchError
from ..utils.image_mappings import collect_image_mappings

DEFAULT_API_BASE = "https://mysite.labcat.nz/wp-json/wp/v2"
DEFAULT_TIMEOUT = 30


@dataclass
class ContentFetchResult:
    content_type: ContentType
    raw_records: List[Dict[str, Any]] = field(default_factory=list)
    rows: List[NormalizedRow] = field(default_factory=list)
    image_mappings: List[ImageMapping] = field(default_factory=list)

    @property
    def source_count(self) -> int:
        return len(self.raw_records)

    @property
    def migrated_count(self) -> int:
        return len(self.rows)


def fetch_content(
    endpoint: str,
    *,
    session: Optional[Any] = None,
    timeout: float = DEFAULT_TIMEOUT,
    label: str = "content",
) -> List[Dict[str, Any]]:
    """Fetch one collection from WordPress.

    :param endpoint: Full collection URL, query string included.
    :param session: Object with a ``get`` method (``requests`` or a
        ``requests.Session``); defaults to the ``requests`` module.
    :param label: Name used in error messages.
    :return: The decoded list of records.
    :raises FetchError: on network errors, non-success status, invalid JSON
        or a payload that is not a list.
    """
    http = session or requests
    try:
        response = http.get(endpoint, timeout=timeout)
    except requests.RequestException as e:
        raise FetchError(f"Failed to fetch {label} from {endpoint}", e) from e

    if not 200 <= response.status_code < 300:
        raise FetchError(f"Failed to fetch {label}: {response.status_code} {response.reason}")

    try:
        payload = response.json()
    except ValueError as e:
        raise FetchError(f"Unexpected {label} payload: response is not valid JSON", e) from e

    if not isinstance(payload, list):
        raise FetchError(f"Unexpected {label} payload: not an array")
    return payload


def fetch_content_set(
    content_type: ContentType,
    *,
    api_base: str = DEFAULT_API_BASE,
    target_base: str = DEFAULT_TARGET_BASE,
    page_size: int = 100,
    embed: bool = False,
    session: Optional[Any] = None,
    now: Optional[str] = None,
) -> ContentFetchResult:
    """Fetch and normalize every record of one content type."""
    endpoint = content_type.endpoint(api_base, page_size=page_size, embed=embed)
    raw_records = fetch_content(endpoint, session=session, label=content_type.key)
    run_time = now or utc_now_iso()
    rows = [
        normalize_record(record, content_type, target_base=target_base, now=run_time)
        for record in raw_records
    ]
    return ContentFetchResult(
        content_type=content_type,
        raw_records=raw_records,
        rows=rows,
        image_mappings=collect_image_mappings(raw_records, rows),
    )


def fetch_all_content(
    content_types: Iterable[ContentType],
    *,
    api_base: str = DEFAULT_API_BASE,
    target_base: str = DEFAULT_TARGET_BASE,
    page_size: int = 100,
    embed: bool = False,
    session: Optional[Any] = None,
) -> List[ContentFetchResult]:
    """Fetch every content type in order; the first failure aborts all."""
    run_time = utc_now_iso()
    return [
        fetch_content_set(
            content_type,
            api_base=api_base,
            target_base=target_base,
            page_size=page_size,
            embed=embed,
            session=session,
            now=run_time,
        )
        for content_type in content_types
    ]
