from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

BASE_COLUMNS = (
    "slug",
    "status",
    "type",
    "title",
    "featuredImage",
    "featuredImages",
    "created",
    "modified",
)

# Columns rewritten when a row with the same slug already exists.
MUTABLE_COLUMNS = (
    "status",
    "type",
    "title",
    "featuredImage",
    "featuredImages",
    "modified",
)


class NormalizedRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slug: str = Field(..., min_length=1)
    status: str = ""
    type: str = ""
    title: str = ""
    featured_image: Optional[str] = Field(None, alias="featuredImage")
    featured_images: Optional[list[str]] = Field(None, alias="featuredImages")
    created: str
    modified: str
    extras: dict[str, Optional[Any]] = Field(default_factory=dict)

    @field_validator("featured_images", mode="before")
    @classmethod
    def _collapse_empty(cls, v: Optional[list[str]]):
        if not v:
            return None
        return v

    def to_columns(self) -> dict[str, Any]:
        """Column/value pairs as stored, ``featuredImages`` JSON-encoded."""
        columns: dict[str, Any] = {
            "slug": self.slug,
            "status": self.status,
            "type": self.type,
            "title": self.title,
            "featuredImage": self.featured_image,
            "featuredImages": json.dumps(self.featured_images) if self.featured_images else None,
            "created": self.created,
            "modified": self.modified,
        }
        columns.update(self.extras)
        return columns

    def update_columns(self) -> dict[str, Any]:
        columns = self.to_columns()
        mutable = {name: columns[name] for name in MUTABLE_COLUMNS}
        mutable.update(self.extras)
        return mutable


class ImageMapping(BaseModel):
    source: str
    target: str


class MigrationSource(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    key: str = Field(..., min_length=1)
    endpoint: str = Field(..., min_length=1)
    target_prefix: str = Field(..., alias="targetPrefix")

    @field_validator("target_prefix", mode="before")
    @classmethod
    def _normalise_prefix(cls, v: str):
        if isinstance(v, str):
            return v.strip().strip("/")
        return v


class ImageMigrationRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str
    source_url: str = Field(..., alias="sourceUrl")
    target_key: str = Field(..., alias="targetKey")
    public_url: Optional[str] = Field(None, alias="publicUrl")
    uploaded: bool = True


class R2Credentials(BaseModel):
    access_key_id: str
    secret_access_key: str
    account_id: str
