"""Core domain primitives for the layer export engine."""

from .models import (
    ArtifactKind,
    ExportArtifact,
    ExportRequest,
    IconReference,
    ViewportOverride,
)
from .exceptions import (
    ExportError,
    FetchError,
    MalformedDocumentError,
    MissingResourceError,
    WriteError,
)

__all__ = [
    "ArtifactKind",
    "ExportArtifact",
    "ExportRequest",
    "IconReference",
    "ViewportOverride",
    "ExportError",
    "FetchError",
    "MalformedDocumentError",
    "MissingResourceError",
    "WriteError",
]
