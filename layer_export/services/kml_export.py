"""KML / KMZ export of a map-server layer."""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import ExportConfig
from ..core import ExportArtifact, ViewportOverride
from ..core.exceptions import MalformedDocumentError, WriteError
from .archive import ArchiveBuilder
from .fetcher import LayerFetcher, build_kml_url
from .icons import IconResolver
from .kml_rewriter import RewriteContext, ensure_complete, rewrite_kml_file
from .kmz_packager import KmzPackager
from .scratch import TempFileStore

logger = logging.getLogger(__name__)

STATIC = "static"
DYNAMIC = "dynamic"
KML = ".kml"
KMZ = ".kmz"

LOAD_ERROR = "There was an error loading the requested KML document."
DYNAMIC_KML_TEMPLATE_ERROR = "The dynamic kml template is not configured properly"
REWRITTEN_DIR = "rewritten"


class KmlExportJob:
    """Export a layer as KML, or as a KMZ when it references hosted icons.

    The document fetched from the map server gets its ``LookAt`` viewpoint
    adjusted and its hosted icon references pointed at ``images/``. When no
    hosted icon is referenced the rewritten KML is returned as is; otherwise
    the icons are looked up under the symbology directory and bundled with
    the document.
    """

    def __init__(
        self,
        layer_name: str,
        export_type: str,
        mapserver_url: str,
        workspace: str,
        kml_filename: str | None = None,
        viewport: ViewportOverride | None = None,
        *,
        config: ExportConfig | None = None,
        fetcher: LayerFetcher | None = None,
        store: TempFileStore | None = None,
    ):
        self.layer_name = layer_name
        self.export_type = export_type
        self.mapserver_url = mapserver_url
        self.workspace = workspace
        self.kml_filename = kml_filename or layer_name
        self.viewport = viewport
        self.config = config or ExportConfig()
        self.fetcher = fetcher or LayerFetcher(timeout=self.config.fetch_timeout)
        self.store = store or TempFileStore(self.config.scratch_dir)
        self.builder = ArchiveBuilder(layer_name, include_metadata_file=False, store=self.store)

    def run(self) -> ExportArtifact | None:
        export_type = self.export_type.lower()
        if export_type == STATIC:
            return self._export_static()
        if export_type == DYNAMIC:
            return self._export_dynamic()

        self.builder.write_text(f"Unsupported KML export type: {self.export_type}")
        return self.builder.text_artifact

    def _export_static(self) -> ExportArtifact | None:
        url = build_kml_url(self.mapserver_url, self.config.kml_export_path, self.workspace, self.layer_name)
        document = self.builder.add_attachment(self.fetcher.fetch(url), self.kml_filename, KML)
        if document is None:
            self.builder.write_text(LOAD_ERROR)
            return self.builder.text_artifact

        return self.process(document.path)

    def _export_dynamic(self) -> ExportArtifact | None:
        template = self.config.dynamic_kml_template
        if not template:
            self.builder.write_text(DYNAMIC_KML_TEMPLATE_ERROR)
            return self.builder.text_artifact

        kml = (
            template.replace("WORKSPACENAME", self.workspace)
            .replace("LAYERNAME", self.layer_name)
            .replace("MAPSERVERURL", self.mapserver_url)
        )
        return self.builder.add_attachment(kml.encode("utf-8"), self.kml_filename, KML)

    def process(self, kml_document: Path) -> ExportArtifact | None:
        """Rewrite ``kml_document`` and package it with its hosted icons.

        Returns ``None`` when the document could not be rewritten or the KMZ
        could not be written.
        """

        logger.debug("Processing %s", kml_document)
        context = RewriteContext(
            viewport=self.viewport,
            symbology_hosts=self.config.resolved_symbology_hosts,
        )
        rewritten = self.store.allocate(self.kml_filename, KML, subdir=REWRITTEN_DIR)

        try:
            icons = rewrite_kml_file(kml_document, rewritten, context, encoding=self.config.kml_encoding)
        except WriteError as exc:
            logger.error("%s", exc, exc_info=exc)
            return None

        try:
            ensure_complete(context)
        except MalformedDocumentError as exc:
            logger.warning("%s; exporting %s as received", exc, self.layer_name)

        if not icons:
            return ExportArtifact.from_path(rewritten)

        symbology_root = Path(self.config.symbology_path)
        icon_files = IconResolver(symbology_root).resolve(icons)
        kmz_path = self.store.allocate(self.kml_filename, KMZ)
        packaged = KmzPackager(symbology_root).package(
            rewritten, icon_files, kmz_path, kml_entry_name=f"{self.kml_filename}{KML}"
        )
        if packaged is None:
            return None
        return ExportArtifact.from_path(packaged)
