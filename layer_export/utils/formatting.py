"""Formatting helpers."""

from __future__ import annotations

from datetime import datetime, timezone

RESOURCE_PREFIX = "NICS"
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H%M%S"


def format_coordinate(value: float) -> str:
    """Render a coordinate the way it is written back into KML."""

    return repr(float(value))


def build_resource_filename(
    incident_name: str | None,
    room_name: str | None,
    *,
    now: datetime | None = None,
) -> str | None:
    """Return ``NICS-<incident>-<room>-<timestamp>`` for an exported resource.

    The extension is left to the job producing the file. ``None`` is
    returned when neither name is known so the caller can fall back to the
    layer name.
    """

    if incident_name is None and room_name is None:
        return None

    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    stamp = moment.strftime(_TIMESTAMP_FORMAT)

    incident = (incident_name or "").replace(" ", "_")
    room = (room_name or "").replace(" ", "_")
    return f"{RESOURCE_PREFIX}-{incident}-{room}-{stamp}"


def parse_datalayer_info(lines: list[str]) -> tuple[str | None, str | None]:
    """Extract incident and room names from datalayer info lines."""

    incident_name = None
    room_name = None
    for entry in lines:
        if "Incident Name: " in entry:
            incident_name = entry.split("Incident Name: ", 1)[1]
        elif "Collaboration Room: " in entry:
            room_name = entry.split("Collaboration Room: ", 1)[1]
    return incident_name, room_name
