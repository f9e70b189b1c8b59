"""Domain models used throughout the export engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Sequence


class ArtifactKind(str, Enum):
    TEXT = "text"
    KML = "kml"
    KMZ = "kmz"
    GEOJSON = "geojson"
    ZIP = "zip"

    @classmethod
    def from_path(cls, path: Path | str) -> "ArtifactKind":
        """Map a file extension onto an artifact kind, defaulting to text."""

        suffix = Path(path).suffix.lower().lstrip(".")
        try:
            return cls(suffix)
        except ValueError:
            return cls.TEXT


@dataclass(slots=True, frozen=True)
class ExportArtifact:
    """A file produced by an export job."""

    name: str
    kind: ArtifactKind
    path: Path
    size: int

    @classmethod
    def from_path(cls, path: Path | str) -> "ExportArtifact":
        path = Path(path)
        size = path.stat().st_size if path.exists() else 0
        return cls(name=path.name, kind=ArtifactKind.from_path(path), path=path, size=size)

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "path": str(self.path),
            "size": self.size,
        }


@dataclass(slots=True, frozen=True)
class ViewportOverride:
    """Camera position written into every ``LookAt`` block of a KML export."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")

    @classmethod
    def from_values(cls, latitude: float | None, longitude: float | None) -> "ViewportOverride | None":
        """Build an override only when both coordinates are supplied."""

        if latitude is None or longitude is None:
            return None
        return cls(latitude=float(latitude), longitude=float(longitude))


@dataclass(slots=True, frozen=True)
class IconReference:
    """An icon URL found in a KML ``<Icon>`` block and its local name."""

    source_url: str
    relative_path: str


@dataclass(slots=True)
class ExportRequest:
    """Everything the pipeline needs to export a single layer."""

    layer_name: str
    export_format: str = "static"
    workspace: str | None = None
    mapserver_url: str | None = None
    filename: str | None = None
    viewport: ViewportOverride | None = None
    metadata: Sequence[str] = field(default_factory=list)
    bundle: bool = False

    @classmethod
    def from_dict(cls, payload: dict) -> "ExportRequest":
        viewport = ViewportOverride.from_values(payload.get("latitude"), payload.get("longitude"))
        return cls(
            layer_name=str(payload["layer_name"]),
            export_format=str(payload.get("export_format") or "static"),
            workspace=payload.get("workspace"),
            mapserver_url=payload.get("mapserver_url"),
            filename=payload.get("filename"),
            viewport=viewport,
            metadata=list(payload.get("metadata") or []),
            bundle=bool(payload.get("bundle", False)),
        )

    def as_dict(self) -> dict:
        return {
            "layer_name": self.layer_name,
            "export_format": self.export_format,
            "workspace": self.workspace,
            "mapserver_url": self.mapserver_url,
            "filename": self.filename,
            "latitude": self.viewport.latitude if self.viewport else None,
            "longitude": self.viewport.longitude if self.viewport else None,
            "metadata": list(self.metadata),
            "bundle": self.bundle,
        }
