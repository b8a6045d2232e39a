"""
Rewriting of WordPress media URLs to their location in the image bucket.

``https://mysite.labcat.nz/wp-content/uploads/2021/03/pic.webp`` becomes
``<target base>/<folder>/pic.webp``.  URLs already pointing at the target
folder are returned unchanged so re-running a migration leaves them alone.
"""

from __future__ import annotations

from typing import Iterable, List, Optional
from urllib.parse import unquote, urlparse

DEFAULT_TARGET_BASE = "https://images.labcat.nz"


def extract_filename(url: str) -> Optional[str]:
    """Return the percent-decoded last path segment of ``url``.

    ``None`` when ``url`` is not an absolute URL or its path ends with a
    slash.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    filename = parsed.path.split("/")[-1]
    if not filename.strip():
        return None
    return unquote(filename)


def rewrite_image_url(
    url: Optional[str], folder: str, target_base: str = DEFAULT_TARGET_BASE
) -> Optional[str]:
    if not url:
        return None
    prefix = f"{target_base.rstrip('/')}/{folder}/"
    if url.startswith(prefix):
        return url
    filename = extract_filename(url)
    if filename is None:
        return None
    return f"{prefix}{filename}"


def rewrite_image_list(
    urls: Optional[Iterable[Optional[str]]], folder: str, target_base: str = DEFAULT_TARGET_BASE
) -> Optional[List[str]]:
    """Rewrite every URL, dropping the ones that cannot be rewritten.

    Returns ``None`` instead of an empty list.
    """
    if not urls:
        return None
    rewritten: List[str] = []
    for url in urls:
        target = rewrite_image_url(url if isinstance(url, str) else None, folder, target_base)
        if target:
            rewritten.append(target)
    return rewritten or None
