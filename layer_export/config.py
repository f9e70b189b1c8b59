"""Runtime configuration for the layer export engine."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping


DEFAULT_SYMBOLOGY_PATH = "/opt/nics/static/symbology"
DEFAULT_KML_EXPORT_PATH = "/wms/kml?mode=download"


def _split_hosts(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(host.strip() for host in value.split(",") if host.strip())


@dataclass(frozen=True)
class ExportConfig:
    """Settings consumed by the export jobs.

    An instance is handed to every job at construction time; nothing in the
    engine reads the environment on its own.
    """

    mapserver_url: str = "http://localhost:8080/geoserver"
    workspace: str = "nics"
    kml_export_path: str = DEFAULT_KML_EXPORT_PATH
    symbology_path: Path = Path(DEFAULT_SYMBOLOGY_PATH)
    symbology_hosts: tuple[str, ...] = ()
    upload_url: str | None = None
    dynamic_kml_template: str | None = None
    scratch_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / "layer-export")
    fetch_timeout: int = 60
    kml_encoding: str = "utf-8"

    @property
    def resolved_symbology_hosts(self) -> tuple[str, ...]:
        """Hosts whose icon URLs are served from the local symbology tree.

        Falls back to the upload URL truncated at ``/upload``. An empty tuple
        means no icon is ever considered hosted.
        """

        if self.symbology_hosts:
            return self.symbology_hosts
        if self.upload_url and "/upload" in self.upload_url:
            host = self.upload_url[: self.upload_url.index("/upload")]
            if host:
                return (host,)
        return ()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ExportConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            mapserver_url=env.get("LAYER_EXPORT_MAPSERVER_URL", defaults.mapserver_url),
            workspace=env.get("LAYER_EXPORT_WORKSPACE", defaults.workspace),
            kml_export_path=env.get("LAYER_EXPORT_KML_PATH", defaults.kml_export_path),
            symbology_path=Path(env.get("LAYER_EXPORT_SYMBOLOGY_PATH", str(defaults.symbology_path))),
            symbology_hosts=_split_hosts(env.get("LAYER_EXPORT_SYMBOLOGY_HOSTS")),
            upload_url=env.get("LAYER_EXPORT_UPLOAD_URL") or None,
            dynamic_kml_template=_read_template(env.get("LAYER_EXPORT_DYNAMIC_KML_TEMPLATE")),
            scratch_dir=Path(env.get("LAYER_EXPORT_SCRATCH_DIR", str(defaults.scratch_dir))),
            fetch_timeout=int(env.get("LAYER_EXPORT_FETCH_TIMEOUT", defaults.fetch_timeout)),
            kml_encoding=env.get("LAYER_EXPORT_KML_ENCODING", defaults.kml_encoding),
        )


def _read_template(value: str | None) -> str | None:
    """Accept either an inline template or a path to a template file."""

    if not value:
        return None
    candidate = Path(value)
    if len(value) < 4096 and candidate.is_file():
        return candidate.read_text(encoding="utf-8")
    return value


@dataclass(frozen=True)
class QueueConfig:
    """Configuration for the Redis-backed export queue."""

    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "layer-export"
    default_timeout: int = 60 * 10  # seconds


QUEUE_CONFIG = QueueConfig(
    redis_url=os.environ.get("LAYER_EXPORT_REDIS_URL", QueueConfig.redis_url),
    queue_name=os.environ.get("LAYER_EXPORT_QUEUE", QueueConfig.queue_name),
    default_timeout=int(
        os.environ.get("LAYER_EXPORT_QUEUE_TIMEOUT", QueueConfig.default_timeout)
    ),
)
