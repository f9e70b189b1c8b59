"""Export pipeline orchestrator."""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ..config import ExportConfig
from ..core import ExportArtifact, ExportRequest
from ..core.exceptions import ExportError
from ..services import ArchiveBuilder, GeoJsonExportJob, KmlExportJob, LayerFetcher, TempFileStore
from ..services.geojson_export import GEOJSON
from ..services.kml_export import DYNAMIC, STATIC
from ..utils import build_resource_filename, parse_datalayer_info

logger = logging.getLogger(__name__)

ERROR_FILENAME = "Export_Error"
TYPE_ERROR = "There was an error retrieving an export file for format "
EXPORT_ERROR = "There was an error processing your request."

KML_FORMATS = {STATIC, "kml"}


@dataclass(slots=True)
class ExportPipeline:
    """Pick the export job for a request and always hand back a file."""

    config: ExportConfig
    fetcher: LayerFetcher

    def run(self, request: ExportRequest, *, store: TempFileStore | None = None) -> ExportArtifact:
        store = store or self.open_store()
        logger.info("Starting %s export of layer %s", request.export_format, request.layer_name)

        filename = self.resource_filename(request)
        job = self.build_job(request, store, filename=filename)
        if job is None:
            return self.error_report(TYPE_ERROR + request.export_format, store)

        try:
            artifact = job.run()
        except ExportError as exc:
            logger.error("Export of %s failed: %s", request.layer_name, exc)
            artifact = None

        if artifact is None:
            return self.error_report(EXPORT_ERROR, store)

        if request.bundle and artifact.path != job.builder.text_path:
            bundled = self._bundle(filename, request, artifact, store)
            if bundled is None:
                return self.error_report(EXPORT_ERROR, store)
            artifact = bundled

        logger.info("Export of %s finished; generated %s", request.layer_name, artifact.name)
        return artifact

    def build_job(
        self,
        request: ExportRequest,
        store: TempFileStore,
        *,
        filename: str | None = None,
    ) -> KmlExportJob | GeoJsonExportJob | None:
        export_format = request.export_format.lower()
        mapserver_url = request.mapserver_url or self.config.mapserver_url
        filename = filename or self.resource_filename(request)

        if export_format in KML_FORMATS or export_format == DYNAMIC:
            return KmlExportJob(
                request.layer_name,
                DYNAMIC if export_format == DYNAMIC else STATIC,
                mapserver_url,
                request.workspace or self.config.workspace,
                filename,
                request.viewport,
                config=self.config,
                fetcher=self.fetcher,
                store=store,
            )
        if export_format == GEOJSON:
            return GeoJsonExportJob(
                request.layer_name,
                mapserver_url,
                filename,
                config=self.config,
                fetcher=self.fetcher,
                store=store,
            )
        return None

    def open_store(self) -> TempFileStore:
        """Open a scratch store under the configured root, else the system temp directory."""

        try:
            return TempFileStore(self.config.scratch_dir)
        except OSError as exc:
            fallback = Path(tempfile.gettempdir())
            logger.error("Scratch root %s is unusable (%s); using %s", self.config.scratch_dir, exc, fallback)
            return TempFileStore(fallback)

    @staticmethod
    def resource_filename(request: ExportRequest) -> str:
        """Explicit filename, else one derived from the datalayer info, else the layer name."""

        if request.filename:
            return request.filename
        incident_name, room_name = parse_datalayer_info(list(request.metadata))
        return build_resource_filename(incident_name, room_name) or request.layer_name

    @staticmethod
    def error_report(message: str, store: TempFileStore) -> ExportArtifact:
        builder = ArchiveBuilder(ERROR_FILENAME, include_metadata_file=True, store=store)
        builder.write_text(message)
        return builder.text_artifact

    def _bundle(
        self,
        filename: str,
        request: ExportRequest,
        artifact: ExportArtifact,
        store: TempFileStore,
    ) -> ExportArtifact | None:
        builder = ArchiveBuilder(filename, include_metadata_file=True, store=store)
        builder.write_text(list(request.metadata))
        builder.add_existing(artifact.path)
        return builder.build_zip()

    @classmethod
    def default(cls, config: ExportConfig | None = None) -> "ExportPipeline":
        config = config or ExportConfig.from_env()
        return cls(config=config, fetcher=LayerFetcher(timeout=config.fetch_timeout))
