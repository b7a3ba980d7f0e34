"""Shared base classes for study documents.

Documents are JSON with camelCase keys. Models accept either the camelCase
alias or the snake_case field name, ignore unknown keys, and default every
optional field so older and newer producers both decode.
"""

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_FORMAT_VERSION = "1.0"
SUPPORTED_FORMAT_MAJOR = 1


class DocumentModel(BaseModel):
    """Immutable model decoded from a study document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class VersionedDocument(DocumentModel):
    """Document carrying a ``formatVersion`` tag.

    Only major version 1 is understood. A missing tag is read as ``1.0``.
    """

    format_version: str = DEFAULT_FORMAT_VERSION

    @field_validator("format_version", mode="before")
    @classmethod
    def check_format_version(cls, v):
        if v is None:
            return DEFAULT_FORMAT_VERSION
        version = str(v).strip()
        major = version.split(".", 1)[0]
        if not major.isdigit() or int(major) != SUPPORTED_FORMAT_MAJOR:
            raise ValueError(
                f"Unsupported format version {version!r} "
                f"(expected {SUPPORTED_FORMAT_MAJOR}.x)"
            )
        return version


def coerce_identifier(v):
    """Normalize numeric identifiers to strings; ids are always plain strings."""
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v
