"""High-level helpers and command line entry point for layer exports."""

from __future__ import annotations

import argparse
import logging
import shutil
from pathlib import Path
from typing import Iterable, Optional

from .config import ExportConfig
from .core import ArtifactKind, ExportRequest, ViewportOverride
from .pipelines import ExportPipeline
from .services import reap_scratch_directory

__all__ = ["export_layer", "main"]

LOGGER = logging.getLogger(__name__)


def export_layer(
    request: ExportRequest,
    *,
    output: Optional[Path] = None,
    config: Optional[ExportConfig] = None,
    pipeline: Optional[ExportPipeline] = None,
) -> tuple[Path, ArtifactKind]:
    """Run an export and copy the result out of the scratch area.

    Parameters
    ----------
    request:
        The layer and export flavour to produce.
    output:
        Destination file or directory. Defaults to the current directory,
        keeping the artifact's own file name.
    config:
        Export settings; read from the environment when omitted.
    pipeline:
        Pipeline to run the export with, mostly useful for tests.

    Returns
    -------
    tuple
        The copied file and the kind of artifact it is. A ``text`` kind
        means the export failed and the file holds the error message.
    """

    if config is None:
        config = pipeline.config if pipeline is not None else ExportConfig.from_env()
    pipeline = pipeline or ExportPipeline.default(config)
    output = Path(output) if output is not None else Path.cwd()

    with pipeline.open_store() as store:
        artifact = pipeline.run(request, store=store)
        target = output / artifact.name if output.is_dir() else output
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(artifact.path, target)

    return target, artifact.kind


def _viewport(args: argparse.Namespace) -> Optional[ViewportOverride]:
    if (args.latitude is None) != (args.longitude is None):
        raise SystemExit("--latitude and --longitude must be given together")
    return ViewportOverride.from_values(args.latitude, args.longitude)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("layer", help="Name of the map-server layer to export")
    parser.add_argument("--mapserver-url", help="Map server base URL (defaults to LAYER_EXPORT_MAPSERVER_URL)")
    parser.add_argument("--filename", help="Base name of the exported file (defaults to the layer name)")
    parser.add_argument(
        "--output",
        type=Path,
        help="Output file or directory (defaults to the current directory)",
    )
    parser.add_argument(
        "--metadata",
        action="append",
        default=[],
        help="Datalayer info line, e.g. 'Incident Name: Fire'. May be repeated.",
    )
    parser.add_argument(
        "--bundle",
        action="store_true",
        help="Zip the export together with a text file holding the metadata lines.",
    )
    parser.add_argument(
        "--enqueue",
        action="store_true",
        help="Schedule the export on the background queue instead of running it.",
    )


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export map-server layers as KML, KMZ or GeoJSON.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    kml = subparsers.add_parser("kml", help="Export a layer as KML, or KMZ when it uses hosted icons.")
    _add_common_arguments(kml)
    kml.add_argument("--workspace", help="Map server workspace (defaults to LAYER_EXPORT_WORKSPACE)")
    kml.add_argument("--latitude", type=float, help="Latitude written into LookAt blocks")
    kml.add_argument("--longitude", type=float, help="Longitude written into LookAt blocks")
    kml.add_argument(
        "--dynamic",
        action="store_true",
        help="Build a dynamic KML document from the configured template.",
    )

    geojson = subparsers.add_parser("geojson", help="Export a layer as GeoJSON.")
    _add_common_arguments(geojson)

    reap = subparsers.add_parser("reap", help="Remove stale scratch directories.")
    reap.add_argument(
        "--max-age",
        type=float,
        default=24.0,
        help="Age in hours after which a scratch directory is removed (default: 24)",
    )
    reap.add_argument("--scratch-dir", type=Path, help="Scratch root (defaults to LAYER_EXPORT_SCRATCH_DIR)")

    return parser


def _request_from_args(args: argparse.Namespace) -> ExportRequest:
    if args.command == "kml":
        return ExportRequest(
            layer_name=args.layer,
            export_format="dynamic" if args.dynamic else "static",
            workspace=args.workspace,
            mapserver_url=args.mapserver_url,
            filename=args.filename,
            viewport=_viewport(args),
            metadata=args.metadata,
            bundle=args.bundle,
        )
    return ExportRequest(
        layer_name=args.layer,
        export_format="geojson",
        mapserver_url=args.mapserver_url,
        filename=args.filename,
        metadata=args.metadata,
        bundle=args.bundle,
    )


def main(argv: Optional[Iterable[str]] = None, *, pipeline: Optional[ExportPipeline] = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    config = pipeline.config if pipeline is not None else ExportConfig.from_env()

    if args.command == "reap":
        root = args.scratch_dir or config.scratch_dir
        removed = reap_scratch_directory(root, max_age_seconds=args.max_age * 3600)
        LOGGER.info("Removed %d scratch director%s from %s", removed, "y" if removed == 1 else "ies", root)
        return 0

    try:
        request = _request_from_args(args)
    except ValueError as error:
        parser.error(str(error))

    if args.enqueue:
        from .tasks import enqueue_export

        job = enqueue_export(request)
        LOGGER.info("Queued export of %s as job %s", request.layer_name, job.id)
        return 0

    target, kind = export_layer(request, output=args.output, config=config, pipeline=pipeline)
    if kind is ArtifactKind.TEXT:
        LOGGER.error("Export of %s failed; see %s", request.layer_name, target)
        return 1

    LOGGER.info("Wrote %s export to %s", kind.value, target)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
