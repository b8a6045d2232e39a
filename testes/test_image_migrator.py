import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
from botocore.exceptions import ClientError

from content_migrator.migrators.image_migrator import (
    collect_image_urls,
    create_s3_client,
    guess_content_type,
    migrate_images,
    r2_endpoint,
)
from content_migrator.models.content import MigrationSource, R2Credentials
from content_migrator.utils.errors import MalformedUrlError, TransferError
from fakes import FakeResponse, FakeS3, FakeSession

CREDS = R2Credentials(access_key_id="key", secret_access_key="secret", account_id="acct")


def _source(key, prefix=None):
    return MigrationSource(key=key, endpoint=f"https://wp/{key}", target_prefix=prefix or key)


def _image(body=b"img"):
    return FakeResponse(content=body)


def test_collect_image_urls_is_unique_and_ordered():
    records = [
        {"featuredImage": "https://old/a.png", "featuredImages": ["https://old/b.png", "https://old/a.png"]},
        {"featured_image": "https://old/c.png", "featuredImages": [None, ""]},
    ]
    assert collect_image_urls(records) == ["https://old/a.png", "https://old/b.png", "https://old/c.png"]


def test_guess_content_type():
    assert guess_content_type("a.JPG") == "image/jpeg"
    assert guess_content_type("a.jpeg") == "image/jpeg"
    assert guess_content_type("a.svg") == "image/svg+xml"
    assert guess_content_type("a.webp") == "image/webp"
    assert guess_content_type("a.bin") is None
    assert guess_content_type("noext") is None


def test_images_are_uploaded_under_prefix_with_content_type():
    session = FakeSession(
        {
            "https://wp/pages": FakeResponse(payload=[{"featuredImage": "https://old/up/hero.png"}]),
            "https://old/up/hero.png": _image(b"png-bytes"),
        }
    )
    s3 = FakeS3()
    records = migrate_images(
        [_source("pages")], CREDS, "bucket", public_base_url="https://img.example/", s3_client=s3, session=session
    )
    assert s3.calls == [
        {"Bucket": "bucket", "Key": "pages/hero.png", "Body": b"png-bytes", "ContentType": "image/png"}
    ]
    assert len(records) == 1
    assert records[0].source == "pages"
    assert records[0].target_key == "pages/hero.png"
    assert records[0].public_url == "https://img.example/pages/hero.png"


def test_unknown_extension_is_uploaded_without_content_type():
    session = FakeSession(
        {
            "https://wp/pages": FakeResponse(payload=[{"featuredImage": "https://old/file.bin"}]),
            "https://old/file.bin": _image(),
        }
    )
    s3 = FakeS3()
    migrate_images([_source("pages")], CREDS, "bucket", s3_client=s3, session=session)
    assert "ContentType" not in s3.calls[0]


def test_shared_url_is_downloaded_once_across_sources():
    shared = "https://old/shared.png"
    session = FakeSession(
        {
            "https://wp/pages": FakeResponse(payload=[{"featuredImage": shared}]),
            "https://wp/animations": FakeResponse(payload=[{"featuredImages": [shared]}]),
            shared: _image(),
        }
    )
    s3 = FakeS3()
    records = migrate_images([_source("pages"), _source("animations")], CREDS, "b", s3_client=s3, session=session)
    assert session.calls.count(shared) == 1
    assert sorted(s3.objects) == ["animations/shared.png", "pages/shared.png"]
    assert [r.source for r in records] == ["pages", "animations"]


def test_same_key_is_uploaded_once():
    session = FakeSession(
        {
            "https://wp/pages": FakeResponse(
                payload=[{"featuredImage": "https://a/x/pic.png"}, {"featuredImage": "https://b/y/pic.png"}]
            ),
            "https://a/x/pic.png": _image(b"first"),
            "https://b/y/pic.png": _image(b"second"),
        }
    )
    s3 = FakeS3()
    records = migrate_images([_source("pages")], CREDS, "b", s3_client=s3, session=session)
    assert len(s3.calls) == 1
    assert s3.objects["pages/pic.png"]["Body"] == b"first"
    assert [r.uploaded for r in records] == [True, False]


def test_url_without_filename_aborts_before_later_images():
    session = FakeSession(
        {
            "https://wp/pages": FakeResponse(
                payload=[
                    {"featuredImage": "https://old/ok.png"},
                    {"featuredImage": "https://host/"},
                    {"featuredImage": "https://old/later.png"},
                ]
            ),
            "https://old/ok.png": _image(),
            "https://old/later.png": _image(),
        }
    )
    s3 = FakeS3()
    with pytest.raises(MalformedUrlError):
        migrate_images([_source("pages")], CREDS, "b", s3_client=s3, session=session)
    assert list(s3.objects) == ["pages/ok.png"]
    assert "https://old/later.png" not in session.calls


def test_failed_download_raises_transfer_error():
    session = FakeSession(
        {
            "https://wp/pages": FakeResponse(payload=[{"featuredImage": "https://old/gone.png"}]),
            "https://old/gone.png": FakeResponse(404, reason="Not Found"),
        }
    )
    with pytest.raises(TransferError, match="404"):
        migrate_images([_source("pages")], CREDS, "b", s3_client=FakeS3(), session=session)


def test_redirected_download_raises_transfer_error():
    session = FakeSession(
        {
            "https://wp/pages": FakeResponse(payload=[{"featuredImage": "https://old/moved.png"}]),
            "https://old/moved.png": FakeResponse(302, content=b"", reason="Found"),
        }
    )
    s3 = FakeS3()
    with pytest.raises(TransferError, match="302"):
        migrate_images([_source("pages")], CREDS, "b", s3_client=s3, session=session)
    assert s3.calls == []


def test_failed_upload_raises_transfer_error():
    session = FakeSession(
        {
            "https://wp/pages": FakeResponse(payload=[{"featuredImage": "https://old/a.png"}]),
            "https://old/a.png": _image(),
        }
    )
    s3 = FakeS3(error=ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"))
    with pytest.raises(TransferError) as exc:
        migrate_images([_source("pages")], CREDS, "b", s3_client=s3, session=session)
    assert isinstance(exc.value.cause, ClientError)


def test_source_without_images_yields_nothing():
    session = FakeSession({"https://wp/pages": FakeResponse(payload=[{"slug": "a"}])})
    s3 = FakeS3()
    assert migrate_images([_source("pages")], CREDS, "b", s3_client=s3, session=session) == []
    assert s3.calls == []


def test_s3_client_targets_account_endpoint():
    client = create_s3_client(CREDS)
    assert client.meta.endpoint_url == r2_endpoint("acct") == "https://acct.r2.cloudflarestorage.com"
