"""Resolve hosted icons against the local symbology tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..core import IconReference
from ..core.exceptions import MissingResourceError
from ..utils import is_within

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IconResolver:
    """Turn icon references into files beneath ``symbology_root``."""

    symbology_root: Path

    def resolve_one(self, reference: IconReference) -> Path:
        root = Path(self.symbology_root)
        path = root / reference.relative_path
        if not is_within(path, root):
            raise MissingResourceError(
                "Icon path escapes the symbology directory",
                details={"icon": reference.relative_path, "url": reference.source_url},
            )
        if not path.is_file():
            raise MissingResourceError(
                "KML document contains reference to missing icon",
                details={"path": str(path), "url": reference.source_url},
            )
        return path

    def resolve(self, references: Iterable[IconReference]) -> list[Path]:
        """Return each distinct resolvable icon once; missing icons are skipped."""

        resolved: list[Path] = []
        seen: set[str] = set()
        for reference in references:
            if reference.relative_path in seen:
                continue
            seen.add(reference.relative_path)
            try:
                resolved.append(self.resolve_one(reference))
            except MissingResourceError as exc:
                logger.warning("%s: %s", exc, exc.details.get("path") or exc.details.get("icon"))
        return resolved
