"""Durable artifact storage: object backends plus the artifact store."""

from .backends import LocalObjectStorage, ObjectStorage, S3ObjectStorage, create_storage
from .store import ArtifactLocation, ArtifactStore, SavedArtifact, StaticAsset, content_type_for

__all__ = [
    "ArtifactLocation",
    "ArtifactStore",
    "SavedArtifact",
    "StaticAsset",
    "content_type_for",
    "ObjectStorage",
    "S3ObjectStorage",
    "LocalObjectStorage",
    "create_storage",
]
