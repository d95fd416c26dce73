"""Durable stores for batch progress and generated artifacts."""

from .artifacts import ArtifactWriter, WrittenArtifact
from .manifest import MANIFEST_VERSION, FailureRecord, Manifest, ManifestStore

__all__ = [
    "ArtifactWriter",
    "FailureRecord",
    "MANIFEST_VERSION",
    "Manifest",
    "ManifestStore",
    "WrittenArtifact",
]
