"""Replication discovery and activation."""

from .catalog import (
    REPLICATION_DIR_PATTERN,
    ReplicationCatalog,
    manifest_path_for,
    parse_replication_id,
    resolve_document_reference,
)

__all__ = [
    "REPLICATION_DIR_PATTERN",
    "ReplicationCatalog",
    "manifest_path_for",
    "parse_replication_id",
    "resolve_document_reference",
]
