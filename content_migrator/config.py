"""
Configuration resolution for the migration entry points.

All settings are resolved once at startup from three layers, first
non-empty value wins:

1. the JSON config file (``config/migration_config.json`` or
   ``config/image_migration_config.json``),
2. the process environment,
3. hard defaults.

For image sources an explicit ``sources`` list replaces the per-field
layering entirely.  The resolvers take the loaded file and an environment
mapping as arguments so the rest of the pipeline never reads the
environment itself.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from .content_types import CONTENT_TYPES
from .extractors.wordpress_extractor import DEFAULT_API_BASE
from .migrators.d1_migrator import DEFAULT_D1_DATABASE
from .migrators.image_migrator import r2_endpoint
from .models.content import MigrationSource, R2Credentials
from .parsers.url_rewriter import DEFAULT_TARGET_BASE
from .utils.errors import ConfigurationError
from .utils.pre_flight_checks import require_settings

CONTENT_CONFIG_FILE = os.path.join("config", "migration_config.json")
IMAGE_CONFIG_FILE = os.path.join("config", "image_migration_config.json")

DEFAULT_PAGE_SIZE = 100

REQUIRED_IMAGE_SETTINGS = (
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "R2_ACCOUNT_ID",
    "R2_BUCKET_NAME",
)


@dataclass(frozen=True)
class ContentSettings:
    api_base: str = DEFAULT_API_BASE
    target_base: str = DEFAULT_TARGET_BASE
    page_size: int = DEFAULT_PAGE_SIZE
    embed: bool = False
    d1_database: str = DEFAULT_D1_DATABASE
    remote: bool = True
    dry_run: bool = False


@dataclass(frozen=True)
class ImageMigrationSettings:
    credentials: R2Credentials
    bucket: str
    endpoint: str
    public_base_url: Optional[str] = None
    sources: List[MigrationSource] = field(default_factory=list)


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Read a JSON config file; a missing file yields an empty config."""
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read config file {path}", e) from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return data


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _first(*values: Any) -> Any:
    for value in values:
        if not _is_empty(value):
            return value
    return None


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}")


def _as_int(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid integer for {name}: {value!r}", e) from e
    if number < 1:
        raise ConfigurationError(f"{name} must be positive, got {number}")
    return number


def resolve_content_settings(file_config: Mapping[str, Any], environ: Mapping[str, str]) -> ContentSettings:
    """Merge the content migration config file, environment and defaults."""
    wordpress = file_config.get("wordpress") or {}
    images = file_config.get("images") or {}
    d1 = file_config.get("d1") or {}
    migration = file_config.get("migration") or {}

    page_size = _first(wordpress.get("page_size"), environ.get("WORDPRESS_PAGE_SIZE"), DEFAULT_PAGE_SIZE)
    embed = _first(wordpress.get("embed"), environ.get("WORDPRESS_EMBED"), False)
    remote = _first(d1.get("remote"), environ.get("D1_REMOTE"), True)
    dry_run = _first(migration.get("dry_run"), environ.get("MIGRATION_DRY_RUN"), False)

    return ContentSettings(
        api_base=_first(wordpress.get("api_base"), environ.get("WORDPRESS_API_BASE"), DEFAULT_API_BASE),
        target_base=_first(images.get("base_url"), environ.get("IMAGES_BASE_URL"), DEFAULT_TARGET_BASE),
        page_size=_as_int(page_size, "page_size"),
        embed=_as_bool(embed, "embed"),
        d1_database=_first(d1.get("database"), environ.get("D1_DATABASE_NAME"), DEFAULT_D1_DATABASE),
        remote=_as_bool(remote, "remote"),
        dry_run=_as_bool(dry_run, "dry_run"),
    )


def family_setting_name(key: str) -> str:
    """``audio-projects`` -> ``AUDIO_PROJECTS``."""
    return key.upper().replace("-", "_")


def resolve_sources(
    file_config: Mapping[str, Any],
    environ: Mapping[str, str],
    explicit: Optional[Sequence[Mapping[str, Any]]] = None,
) -> List[MigrationSource]:
    """Resolve the image migration sources.

    An explicit list (argument, else the file's ``sources`` key) is used
    as-is.  Otherwise each known content family resolves
    ``<FAMILY>_ENDPOINT`` and ``R2_<FAMILY>_PREFIX`` from the file, then
    the environment, then the defaults (the family's WordPress route and
    its image folder).
    """
    explicit = explicit if explicit is not None else file_config.get("sources")
    if explicit:
        try:
            return [MigrationSource.model_validate(item) for item in explicit]
        except ValidationError as e:
            raise ConfigurationError("Invalid entry in the image migration sources list", e) from e

    api_base = _first(file_config.get("WORDPRESS_API_BASE"), environ.get("WORDPRESS_API_BASE"), DEFAULT_API_BASE)
    sources: List[MigrationSource] = []
    for content_type in CONTENT_TYPES:
        family = family_setting_name(content_type.key)
        endpoint_name = f"{family}_ENDPOINT"
        prefix_name = f"R2_{family}_PREFIX"
        sources.append(
            MigrationSource(
                key=content_type.key,
                endpoint=_first(
                    file_config.get(endpoint_name),
                    environ.get(endpoint_name),
                    content_type.endpoint(api_base, page_size=DEFAULT_PAGE_SIZE),
                ),
                target_prefix=_first(
                    file_config.get(prefix_name),
                    environ.get(prefix_name),
                    content_type.folder,
                ),
            )
        )
    return sources


def select_sources(sources: Sequence[MigrationSource], keys: Optional[Sequence[str]]) -> List[MigrationSource]:
    if not keys:
        return list(sources)
    known = {source.key for source in sources}
    for key in keys:
        if key not in known:
            raise ConfigurationError(f"Unknown image source '{key}'. Expected one of: {', '.join(sorted(known))}")
    return [source for source in sources if source.key in keys]


def resolve_image_settings(
    file_config: Mapping[str, Any],
    environ: Mapping[str, str],
    explicit_sources: Optional[Sequence[Mapping[str, Any]]] = None,
) -> ImageMigrationSettings:
    """Merge the image migration config file, environment and defaults.

    :raises ConfigurationError: naming the first missing credential.
    """
    values = {
        name: _first(file_config.get(name), environ.get(name))
        for name in (*REQUIRED_IMAGE_SETTINGS, "R2_ENDPOINT", "R2_PUBLIC_BASE_URL")
    }
    require_settings(values, REQUIRED_IMAGE_SETTINGS)

    credentials = R2Credentials(
        access_key_id=values["R2_ACCESS_KEY_ID"],
        secret_access_key=values["R2_SECRET_ACCESS_KEY"],
        account_id=values["R2_ACCOUNT_ID"],
    )
    return ImageMigrationSettings(
        credentials=credentials,
        bucket=values["R2_BUCKET_NAME"],
        endpoint=values["R2_ENDPOINT"] or r2_endpoint(credentials.account_id),
        public_base_url=values["R2_PUBLIC_BASE_URL"],
        sources=resolve_sources(file_config, environ, explicit_sources),
    )
