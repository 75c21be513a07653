"""Artifact storage on the local filesystem."""

from .artifact_models import Artifact, ArtifactKind
from .artifact_store import ArtifactStore

__all__ = ["Artifact", "ArtifactKind", "ArtifactStore"]
