"""
Extractors for the WordPress REST API.

This subpackage fetches content sets from WordPress and turns them into
normalized rows plus the image URL mappings they imply.
"""

from .wordpress_extractor import ContentFetchResult, fetch_all_content, fetch_content, fetch_content_set

__all__ = ["ContentFetchResult", "fetch_all_content", "fetch_content", "fetch_content_set"]
