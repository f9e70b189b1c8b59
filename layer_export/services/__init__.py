"""Service layer exports."""

from .archive import ArchiveBuilder
from .fetcher import LayerFetcher, build_geojson_url, build_kml_url
from .geojson_export import GeoJsonExportJob
from .icons import IconResolver
from .kml_export import KmlExportJob
from .kml_rewriter import RewriteContext, rewrite_kml_file, rewrite_kml_lines
from .kmz_packager import KmzPackager
from .scratch import TempFileStore, reap_scratch_directory

__all__ = [
    "ArchiveBuilder",
    "LayerFetcher",
    "build_geojson_url",
    "build_kml_url",
    "GeoJsonExportJob",
    "IconResolver",
    "KmlExportJob",
    "RewriteContext",
    "rewrite_kml_file",
    "rewrite_kml_lines",
    "KmzPackager",
    "TempFileStore",
    "reap_scratch_directory",
]
