from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import pytest

from layer_export.config import ExportConfig
from layer_export.core.exceptions import FetchError
from layer_export.services import LayerFetcher, TempFileStore


SAMPLE_KML = """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
<Document>
<name>incident_layer</name>
<LookAt>
<longitude>180.0</longitude>
<latitude>0.0</latitude>
<altitude>1.5766377413365064E7</altitude>
<heading>0.0</heading>
<tilt>0.0</tilt>
<range>1.2740059922829097E7</range>
<altitudeMode>clampToGround</altitudeMode>
</LookAt>
<Style id="hosted">
<IconStyle>
<Icon>
<href>https://nics.example.com/upload/symbology/sub/flag.png</href>
</Icon>
</IconStyle>
</Style>
<Style id="styles">
<IconStyle>
<Icon>
<href>https://nics.example.com/geoserver/styles/marker.png</href>
</Icon>
</IconStyle>
</Style>
<Style id="third-party">
<IconStyle>
<Icon>
<href>https://maps.google.com/mapfiles/kml/pushpin/red-pushpin.png</href>
</Icon>
</IconStyle>
</Style>
<Placemark>
<name>Command Post</name>
<styleUrl>#hosted</styleUrl>
<Point><coordinates>-71.26,42.46,0</coordinates></Point>
</Placemark>
</Document>
</kml>
"""


class DummyHttpClient:
    def __init__(self) -> None:
        self.responses: Dict[str, bytes] = {}
        self.default: bytes | None = None
        self.requested: List[str] = []

    def queue(self, url: str, payload: bytes) -> None:
        self.responses[url] = payload

    def get_bytes(self, url: str, timeout: int) -> bytes:
        self.requested.append(url)
        if url in self.responses:
            return self.responses[url]
        if self.default is not None:
            return self.default
        raise FetchError("Connection refused", details={"url": url})


@pytest.fixture()
def http_client() -> DummyHttpClient:
    return DummyHttpClient()


@pytest.fixture()
def fetcher(http_client: DummyHttpClient) -> LayerFetcher:
    return LayerFetcher(http_client=http_client, timeout=5)


@pytest.fixture()
def symbology_root(tmp_path: Path) -> Path:
    root = tmp_path / "symbology"
    (root / "sub").mkdir(parents=True)
    (root / "sub" / "flag.png").write_bytes(b"\x89PNG\r\n\x1a\nflag")
    (root / "marker.png").write_bytes(b"\x89PNG\r\n\x1a\nmarker")
    return root


@pytest.fixture()
def config(tmp_path: Path, symbology_root: Path) -> ExportConfig:
    return ExportConfig(
        mapserver_url="http://maps.example.com/geoserver",
        workspace="nics",
        symbology_path=symbology_root,
        symbology_hosts=("nics.example.com",),
        scratch_dir=tmp_path / "scratch",
    )


@pytest.fixture()
def store(config: ExportConfig):
    scratch = TempFileStore(config.scratch_dir)
    yield scratch
    scratch.cleanup()


@pytest.fixture()
def sample_kml() -> str:
    return SAMPLE_KML
