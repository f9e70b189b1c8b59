"""Line-oriented rewrite of map-server KML documents.

The map server emits one element per line, so the rewrite works on lines
instead of parsing the whole document. Two fragments are touched:

``<LookAt>`` blocks
    latitude and longitude are replaced with the requested viewport (when
    there is one) and altitude and range are pinned to fixed values.

``<Icon>`` blocks
    the ``<href>`` on the line following ``<Icon>`` is rewritten to a path
    inside the KMZ when the icon is served from our own symbology tree.

Every other line is copied through untouched, line ending included.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator

from ..core import IconReference, ViewportOverride
from ..core.exceptions import MalformedDocumentError, WriteError
from ..utils import detect_encoding, format_coordinate

logger = logging.getLogger(__name__)

LOOKAT = "LookAt"
LOOKAT_END = "</LookAt>"
ICON = "<Icon>"
KMZ_ICON_PREFIX = "images/"
ICON_MARKERS = ("upload/symbology/", "geoserver/styles/")

LOOKAT_ALTITUDE = "500"
LOOKAT_RANGE = "800000"  # roughly 500mi

_HREF = re.compile(r"<href>(.*)</href>")


class ScanState(str, Enum):
    SCANNING = "scanning"
    IN_LOOKAT = "in_lookat"


@dataclass(slots=True)
class RewriteContext:
    """State threaded through a single rewrite pass."""

    viewport: ViewportOverride | None = None
    symbology_hosts: tuple[str, ...] = ()
    icons: list[IconReference] = field(default_factory=list)
    state: ScanState = ScanState.SCANNING

    def is_hosted(self, url: str) -> bool:
        return any(host in url for host in self.symbology_hosts)


@lru_cache(maxsize=None)
def _element_pattern(element: str) -> re.Pattern[str]:
    return re.compile(rf"<{element}>([-+]?[0-9.]+(?:[eE][-+]?[0-9]+)?)</{element}>")


def replace_element_value(line: str, element: str, value: str) -> str:
    """Swap the numeric content of ``<element>NUMBER</element>`` for ``value``.

    Lines that do not carry a numeric value for ``element`` are returned as is.
    """

    match = _element_pattern(element).search(line)
    if match is None:
        return line
    start, end = match.span(1)
    return f"{line[:start]}{value}{line[end:]}"


def icon_name_for(url: str) -> str:
    """Path of a hosted icon relative to the symbology root."""

    for marker in ICON_MARKERS:
        if marker in url:
            return url[url.index(marker) + len(marker):]
    return url.rstrip("/").split("/")[-1]


def extract_href(line: str) -> str | None:
    match = _HREF.fullmatch(line.strip())
    return match.group(1) if match else None


def _rewrite_lookat_line(line: str, context: RewriteContext) -> str:
    viewport = context.viewport
    if "<latitude>" in line and viewport is not None:
        return replace_element_value(line, "latitude", format_coordinate(viewport.latitude))
    if "<longitude>" in line and viewport is not None:
        return replace_element_value(line, "longitude", format_coordinate(viewport.longitude))
    if "<altitude>" in line:
        return replace_element_value(line, "altitude", LOOKAT_ALTITUDE)
    if "<range>" in line:
        return replace_element_value(line, "range", LOOKAT_RANGE)
    return line


def _rewrite_href_line(line: str, context: RewriteContext) -> str:
    url = extract_href(line)
    if url is None:
        logger.debug("Expected an <href> after <Icon>, got %r", line.strip())
        return line

    logger.debug("Found icon: %s", url)
    if not context.is_hosted(url):
        # third-party icon, left for the client to fetch
        logger.debug("Ignoring %s", url)
        return line

    icon_name = icon_name_for(url)
    if not icon_name:
        return line

    local_path = f"{KMZ_ICON_PREFIX}{icon_name}"
    logger.debug("Icon: %s", local_path)
    context.icons.append(IconReference(source_url=url, relative_path=icon_name))
    return line.replace(url, local_path, 1)


def rewrite_kml_lines(lines: Iterable[str], context: RewriteContext) -> Iterator[str]:
    """Yield the rewritten form of ``lines``.

    Running out of input inside a ``LookAt`` block or right after ``<Icon>``
    simply ends the scan; ``context.state`` tells where it stopped.
    """

    stream = iter(lines)
    for line in stream:
        if LOOKAT in line:
            yield line
            current = line
            context.state = ScanState.IN_LOOKAT
            while LOOKAT_END not in current:
                current = next(stream, None)
                if current is None:
                    logger.warning("KML document ended inside a LookAt block")
                    return
                yield _rewrite_lookat_line(current, context)
            context.state = ScanState.SCANNING
            continue

        if ICON in line:
            yield line
            href_line = next(stream, None)
            if href_line is None:
                logger.warning("KML document ended after an <Icon> tag")
                return
            yield _rewrite_href_line(href_line, context)
            continue

        yield line


def ensure_complete(context: RewriteContext) -> None:
    """Raise when the last pass stopped inside a ``LookAt`` block."""

    if context.state is not ScanState.SCANNING:
        raise MalformedDocumentError(
            "KML document ended inside a LookAt block",
            details={"state": context.state.value},
        )


def rewrite_kml_file(
    source: Path | str,
    target: Path | str,
    context: RewriteContext,
    *,
    encoding: str = "utf-8",
) -> list[IconReference]:
    """Rewrite ``source`` into ``target`` and return the hosted icons found.

    ``encoding="auto"`` sniffs the document encoding first. Bytes that do not
    decode are carried through unchanged.
    """

    source = Path(source)
    target = Path(target)
    try:
        if encoding == "auto":
            encoding = detect_encoding(source)
        with source.open("r", encoding=encoding, errors="surrogateescape", newline="") as reader, \
                target.open("w", encoding=encoding, errors="surrogateescape", newline="") as writer:
            for line in rewrite_kml_lines(reader, context):
                writer.write(line)
    except (OSError, UnicodeError, LookupError) as exc:
        raise WriteError(
            f"Error processing KML for icons: {exc}",
            details={"source": str(source), "target": str(target)},
        ) from exc

    return context.icons
