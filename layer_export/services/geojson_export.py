"""GeoJSON export of a map-server layer."""

from __future__ import annotations

import logging

from ..config import ExportConfig
from ..core import ExportArtifact
from .archive import ArchiveBuilder
from .fetcher import LayerFetcher, build_geojson_url
from .scratch import TempFileStore

logger = logging.getLogger(__name__)

GEOJSON = "geojson"
GEOJSON_EXT = ".geojson"
RETRIEVAL_ERROR = "There was an error retrieving the document."


class GeoJsonExportJob:
    """Fetch a layer through WFS and hand back the document untouched."""

    def __init__(
        self,
        layer_name: str,
        mapserver_url: str,
        filename: str | None = None,
        *,
        config: ExportConfig | None = None,
        fetcher: LayerFetcher | None = None,
        store: TempFileStore | None = None,
    ):
        self.layer_name = layer_name
        self.mapserver_url = mapserver_url
        self.filename = filename or layer_name
        self.config = config or ExportConfig()
        self.fetcher = fetcher or LayerFetcher(timeout=self.config.fetch_timeout)
        self.builder = ArchiveBuilder(
            layer_name,
            store=store or TempFileStore(self.config.scratch_dir),
        )

    def run(self) -> ExportArtifact:
        url = build_geojson_url(self.mapserver_url, self.layer_name)
        document = self.builder.add_attachment(self.fetcher.fetch(url), self.filename, GEOJSON_EXT)
        if document is None:
            self.builder.write_text(RETRIEVAL_ERROR)
            return self.builder.text_artifact

        logger.info("Exported %s as %s (%d bytes)", self.layer_name, document.name, document.size)
        return document
