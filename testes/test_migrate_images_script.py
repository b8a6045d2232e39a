import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import importlib.util
import json

import pytest

from fakes import FakeResponse, FakeS3, FakeSession


def _load_script(name):
    path = os.path.join(PROJECT_ROOT, "scripts", f"{name}.py")
    spec = importlib.util.spec_from_file_location(f"scripts_{name}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def script():
    return _load_script("migrate_images")


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "image_migration_config.json"
    path.write_text(
        json.dumps(
            {
                "R2_ACCESS_KEY_ID": "key",
                "R2_SECRET_ACCESS_KEY": "secret",
                "R2_ACCOUNT_ID": "acct",
                "R2_BUCKET_NAME": "bucket",
                "R2_PUBLIC_BASE_URL": "https://img.test",
                "PAGES_ENDPOINT": "https://wp.test/pages",
            }
        ),
        encoding="utf-8",
    )
    return str(path)


def test_mapping_is_printed_and_saved(script, config_file, capsys):
    session = FakeSession(
        {
            "https://wp.test/pages": FakeResponse(payload=[{"featuredImage": "https://wp.test/up/a.gif"}]),
            "https://wp.test/up/a.gif": FakeResponse(content=b"gif"),
        }
    )
    s3 = FakeS3()
    code = script.main(["--config", config_file, "--source", "pages"], s3_client=s3, session=session)
    assert code == 0
    assert s3.objects["pages/a.gif"]["ContentType"] == "image/gif"
    assert "Migration finished. Mapping:" in capsys.readouterr().out
    with open("reports/image_migration_map.json", encoding="utf-8") as f:
        mapping = json.load(f)
    assert mapping == [
        {
            "source": "pages",
            "sourceUrl": "https://wp.test/up/a.gif",
            "targetKey": "pages/a.gif",
            "publicUrl": "https://img.test/pages/a.gif",
            "uploaded": True,
        }
    ]


def test_no_images_is_success(script, config_file, capsys):
    session = FakeSession({"https://wp.test/pages": FakeResponse(payload=[])})
    code = script.main(["--config", config_file, "--source", "pages"], s3_client=FakeS3(), session=session)
    assert code == 0
    assert "no images processed" in capsys.readouterr().out
    assert not os.path.exists("reports/image_migration_map.json")


def test_missing_credentials_fail(script, tmp_path, monkeypatch, capsys):
    for name in ("R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY", "R2_ACCOUNT_ID", "R2_BUCKET_NAME"):
        monkeypatch.delenv(name, raising=False)
    code = script.main(["--config", str(tmp_path / "absent.json")], s3_client=FakeS3(), session=FakeSession({}))
    assert code == 1
    assert "Missing required configuration value: R2_ACCESS_KEY_ID" in capsys.readouterr().err
    with open("reports/migration/errors.jsonl", encoding="utf-8") as f:
        assert json.loads(f.readline())["code"] == "CONFIGURATION"


def test_initialize_database_creates_tables(tmp_path, capsys):
    module = _load_script("initialize_database")
    db = str(tmp_path / "data" / "content.duckdb")
    module.initialize_database(db)
    out = capsys.readouterr().out
    assert "Table 'audio_projects' ready (0 rows)." in out
    assert os.path.exists(db)
