"""Package a rewritten KML document and its icons into a KMZ."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable
from zipfile import ZIP_DEFLATED, ZipFile

from .kml_rewriter import KMZ_ICON_PREFIX

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class KmzPackager:
    """Create KMZ archives with the KML at the root and icons under ``images/``."""

    symbology_root: Path

    def entry_name(self, icon: Path | str) -> str:
        """Archive name of ``icon``, keeping its sub-path below the symbology root."""

        icon = Path(os.path.abspath(icon))
        root = Path(os.path.abspath(self.symbology_root))
        try:
            relative = icon.relative_to(root)
        except ValueError:
            relative = Path(icon.name)
        return f"{KMZ_ICON_PREFIX}{relative.as_posix()}"

    def package(
        self,
        kml_path: Path | str,
        icons: Iterable[Path],
        output_path: Path | str,
        *,
        kml_entry_name: str | None = None,
    ) -> Path | None:
        kml_path = Path(kml_path)
        output_path = Path(output_path)
        written: set[str] = set()

        try:
            with ZipFile(output_path, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as archive:
                archive.write(kml_path, kml_entry_name or kml_path.name)
                for icon in icons:
                    arcname = self.entry_name(icon)
                    if arcname in written:
                        continue
                    try:
                        archive.write(icon, arcname)
                    except OSError:
                        logger.exception("Unable to add icon %s to %s", icon, output_path)
                        continue
                    written.add(arcname)
        except OSError:
            logger.exception("Unable to build KMZ archive %s", output_path)
            return None

        logger.info("Packaged %s with %d icon(s)", output_path.name, len(written))
        return output_path
