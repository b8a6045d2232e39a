"""
Copying WordPress media into the R2 image bucket.

For every configured source the migrator fetches the content set, collects
the image URLs referenced by ``featuredImage``/``featuredImages``, downloads
each one and uploads it under ``<prefix>/<filename>``.  Two run-scoped
caches keep the work minimal:

* downloads are cached by source URL, so an image referenced by several
  sources is fetched once;
* uploads are tracked by object key, so two URLs ending in the same
  filename under the same prefix are uploaded once.

Unlike URL rewriting during normalization, an image URL without a usable
filename aborts the run here, as does any failed download or upload.
Images uploaded before the failure stay in the bucket.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import boto3
import requests
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..content_types import raw_featured_image, raw_featured_images
from ..extractors.wordpress_extractor import DEFAULT_TIMEOUT, fetch_content
from ..models.content import ImageMigrationRecord, MigrationSource, R2Credentials
from ..parsers.url_rewriter import extract_filename
from ..utils.errors import MalformedUrlError, TransferError, report_ok
from ..utils.logs import log_message

CONTENT_TYPES_BY_EXTENSION: Dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}


def r2_endpoint(account_id: str) -> str:
    return f"https://{account_id}.r2.cloudflarestorage.com"


def create_s3_client(credentials: R2Credentials, endpoint: Optional[str] = None) -> Any:
    """Create a boto3 S3 client pointed at the R2 account endpoint."""
    return boto3.client(
        "s3",
        endpoint_url=endpoint or r2_endpoint(credentials.account_id),
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def guess_content_type(filename: str) -> Optional[str]:
    extension = filename.lower().rsplit(".", 1)[-1] if "." in filename else ""
    return CONTENT_TYPES_BY_EXTENSION.get(extension)


def image_filename(url: str) -> str:
    filename = extract_filename(url)
    if filename is None:
        raise MalformedUrlError(f"Unable to determine filename from URL: {url}")
    return filename


def collect_image_urls(records: Iterable[Mapping[str, Any]]) -> List[str]:
    """Unique image URLs referenced by ``records``, in first-seen order."""
    urls: Dict[str, None] = {}
    for record in records:
        single = raw_featured_image(record)
        if single:
            urls.setdefault(single)
        for url in raw_featured_images(record):
            if isinstance(url, str) and url:
                urls.setdefault(url)
    return list(urls)


def download_image(url: str, *, session: Optional[Any] = None, timeout: float = DEFAULT_TIMEOUT) -> bytes:
    http = session or requests
    try:
        response = http.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise TransferError(f"Failed to download image {url}", e) from e
    if not 200 <= response.status_code < 300:
        raise TransferError(f"Failed to download image {url} ({response.status_code})")
    return response.content


def upload_image(s3_client: Any, bucket: str, key: str, body: bytes, content_type: Optional[str] = None) -> None:
    params: Dict[str, Any] = {"Bucket": bucket, "Key": key, "Body": body}
    if content_type:
        params["ContentType"] = content_type
    try:
        s3_client.put_object(**params)
    except (BotoCoreError, ClientError) as e:
        raise TransferError(f"Failed to upload s3://{bucket}/{key}", e) from e


def public_url_for(public_base_url: Optional[str], key: str) -> Optional[str]:
    if not public_base_url:
        return None
    return f"{public_base_url.rstrip('/')}/{key}"


class ImageMigrator:
    """
    Run-scoped image copier.  One instance handles one run; its download
    cache and uploaded-key set are not shared with other runs.
    """

    def __init__(
        self,
        s3_client: Any,
        bucket: str,
        *,
        public_base_url: Optional[str] = None,
        session: Optional[Any] = None,
        log: Callable[..., None] = log_message,
    ) -> None:
        self.s3_client = s3_client
        self.bucket = bucket
        self.public_base_url = public_base_url
        self.session = session
        self.log = log
        self._downloads: Dict[str, bytes] = {}
        self._uploaded_keys: set = set()

    def _download(self, url: str) -> bytes:
        if url not in self._downloads:
            self.log(f"Downloading {url}")
            self._downloads[url] = download_image(url, session=self.session)
        else:
            self.log(f"Reusing downloaded copy of {url}", level="DEBUG")
        return self._downloads[url]

    def migrate_source(self, source: MigrationSource) -> List[ImageMigrationRecord]:
        records = fetch_content(source.endpoint, session=self.session, label=source.key)
        urls = collect_image_urls(records)
        if not urls:
            self.log(f"No {source.key} images found to migrate.")
            return []

        self.log(f"Found {len(urls)} image(s) for {source.key}. Starting migration...")
        results: List[ImageMigrationRecord] = []
        for url in urls:
            filename = image_filename(url)
            key = f"{source.target_prefix}/{filename}" if source.target_prefix else filename
            body = self._download(url)

            uploaded = key not in self._uploaded_keys
            if uploaded:
                self.log(f"Uploading to R2 as {key}")
                upload_image(self.s3_client, self.bucket, key, body, guess_content_type(filename))
                self._uploaded_keys.add(key)
                report_ok("IMAGE_UPLOADED", {"url": url}, {"key": key, "source": source.key})
            else:
                self.log(f"{key} already uploaded in this run, skipping upload", level="DEBUG")
                report_ok("IMAGE_SKIPPED", {"url": url}, {"key": key, "source": source.key})

            results.append(
                ImageMigrationRecord(
                    source=source.key,
                    source_url=url,
                    target_key=key,
                    public_url=public_url_for(self.public_base_url, key),
                    uploaded=uploaded,
                )
            )
        return results

    def migrate(self, sources: Sequence[MigrationSource]) -> List[ImageMigrationRecord]:
        results: List[ImageMigrationRecord] = []
        for source in sources:
            results.extend(self.migrate_source(source))
        return results


def migrate_images(
    sources: Sequence[MigrationSource],
    credentials: R2Credentials,
    bucket: str,
    *,
    endpoint: Optional[str] = None,
    public_base_url: Optional[str] = None,
    s3_client: Optional[Any] = None,
    session: Optional[Any] = None,
    log: Callable[..., None] = log_message,
) -> List[ImageMigrationRecord]:
    """Copy every image referenced by ``sources`` into ``bucket``.

    :param sources: Resolved sources, processed in order.
    :param credentials: R2 access keys and account id.
    :param bucket: Destination bucket name.
    :param endpoint: S3 endpoint; defaults to the account's R2 endpoint.
    :param public_base_url: Optional public base joined with each key.
    :param s3_client: Pre-built client, used instead of creating one.
    :return: One record per processed image, tagged with its source key.
    :raises MalformedUrlError: if an image URL has no filename.
    :raises TransferError: if a download or upload fails.
    """
    client = s3_client or create_s3_client(credentials, endpoint)
    migrator = ImageMigrator(client, bucket, public_base_url=public_base_url, session=session, log=log)
    return migrator.migrate(sources)
