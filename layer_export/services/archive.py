"""Staging area for export artifacts."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Sequence
from zipfile import ZIP_DEFLATED, ZipFile

from ..core import ExportArtifact
from .scratch import TempFileStore

logger = logging.getLogger(__name__)

TXT = ".txt"
ZIP = ".zip"


class ArchiveBuilder:
    """Collect a primary text artifact plus any number of attached files.

    The text artifact always exists so a job can hand back a readable error
    message whatever else went wrong. When ``include_metadata_file`` is set
    it is also shipped as a regular attachment.
    """

    def __init__(
        self,
        name: str,
        *,
        include_metadata_file: bool = False,
        store: TempFileStore | None = None,
    ):
        self.name = name
        self.store = store or TempFileStore()
        self.include_metadata_file = include_metadata_file
        self._attachments: list[Path] = []

        self.text_path = self.store.allocate(name, TXT)
        try:
            self.text_path.touch()
        except OSError:
            logger.exception("Unable to create text file in %s", self.store.directory)
        if include_metadata_file:
            self._attachments.append(self.text_path)

    @property
    def text_artifact(self) -> ExportArtifact:
        return ExportArtifact.from_path(self.text_path)

    @property
    def attachments(self) -> tuple[Path, ...]:
        return tuple(self._attachments)

    def write_text(self, content: str | Sequence[str]) -> None:
        """Overwrite the text artifact with ``content``.

        A sequence is written one entry per line.
        """

        try:
            with self.text_path.open("w", encoding="utf-8", newline="\n") as handle:
                if isinstance(content, str):
                    handle.write(content)
                else:
                    for line in content:
                        handle.write(line)
                        handle.write("\n")
        except OSError:
            logger.exception("Unable to write to %s", self.text_path)

    def add_attachment(self, data: bytes | None, filename: str, extension: str) -> ExportArtifact | None:
        """Write ``data`` to a new scratch file and attach it."""

        if not data:
            logger.warning("No layer content received for %s%s", filename, extension)
            return None

        path = self.store.allocate(filename, extension)
        try:
            path.write_bytes(data)
        except OSError:
            logger.exception("Unable to stage %s", path)
            return None

        self._attachments.append(path)
        return ExportArtifact.from_path(path)

    def add_existing(self, path: Path | str) -> ExportArtifact:
        """Attach a file that already exists on disk without copying it."""

        path = Path(path)
        self._attachments.append(path)
        return ExportArtifact.from_path(path)

    def build_zip(self) -> ExportArtifact | None:
        """Zip every attachment, named by its base name.

        Entry names are not de-duplicated. Returns ``None`` on I/O failure.
        """

        zip_path = self.store.allocate(self.name, ZIP)
        try:
            with ZipFile(zip_path, "w", compression=ZIP_DEFLATED) as archive:
                for attachment in self._attachments:
                    with attachment.open("rb") as source, archive.open(attachment.name, "w") as target:
                        shutil.copyfileobj(source, target)
        except OSError:
            logger.exception("Unable to build zip archive %s", zip_path)
            return None

        return ExportArtifact.from_path(zip_path)
