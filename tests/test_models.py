from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from layer_export.core import ArtifactKind, ExportArtifact, ExportRequest, ViewportOverride
from layer_export.core.exceptions import FetchError
from layer_export.utils import build_resource_filename, is_within, parse_datalayer_info, safe_filename


@pytest.mark.parametrize(
    "filename, kind",
    [
        ("layer.kml", ArtifactKind.KML),
        ("layer.KMZ", ArtifactKind.KMZ),
        ("layer.geojson", ArtifactKind.GEOJSON),
        ("layer.zip", ArtifactKind.ZIP),
        ("layer.txt", ArtifactKind.TEXT),
    ],
)
def test_artifact_kind_from_path(filename: str, kind: ArtifactKind):
    assert ArtifactKind.from_path(filename) is kind


def test_export_artifact_from_path(tmp_path: Path):
    path = tmp_path / "layer.kml"
    path.write_bytes(b"<kml/>")

    artifact = ExportArtifact.from_path(path)

    assert artifact.as_dict() == {"name": "layer.kml", "kind": "kml", "path": str(path), "size": 6}


def test_viewport_requires_both_values():
    assert ViewportOverride.from_values(None, 10.0) is None
    assert ViewportOverride.from_values(1, 2) == ViewportOverride(latitude=1.0, longitude=2.0)


@pytest.mark.parametrize("latitude, longitude", [(91.0, 0.0), (0.0, -181.0)])
def test_viewport_rejects_out_of_range(latitude: float, longitude: float):
    with pytest.raises(ValueError):
        ViewportOverride(latitude=latitude, longitude=longitude)


def test_export_request_from_dict_defaults():
    request = ExportRequest.from_dict({"layer_name": "roads"})

    assert request.export_format == "static"
    assert request.viewport is None
    assert request.metadata == []
    assert request.bundle is False


def test_export_error_as_dict():
    error = FetchError("Connection refused", details={"url": "http://maps"})

    assert error.as_dict() == {"message": "Connection refused", "details": {"url": "http://maps"}}
    assert FetchError("boom").as_dict() == {"message": "boom"}


def test_build_resource_filename():
    moment = datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)

    assert build_resource_filename("Big Fire", "Ops Room", now=moment) == "NICS-Big_Fire-Ops_Room-2021-03-04T050607"
    assert build_resource_filename(None, "Ops", now=moment) == "NICS--Ops-2021-03-04T050607"
    assert build_resource_filename(None, None) is None


def test_parse_datalayer_info():
    lines = ["Incident Name: Big Fire", "Incident Type: Wildfire", "Collaboration Room: Ops"]

    assert parse_datalayer_info(lines) == ("Big Fire", "Ops")
    assert parse_datalayer_info([]) == (None, None)


def test_safe_filename():
    assert safe_filename("nics:R12 point.kml") == "nicsR12point.kml"
    assert safe_filename("../") == "export"


def test_is_within(tmp_path: Path):
    assert is_within(tmp_path / "a" / "b.png", tmp_path)
    assert not is_within(tmp_path / ".." / "b.png", tmp_path)
