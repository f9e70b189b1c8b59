from __future__ import annotations

import http.client
import io
from urllib import error as urllib_error

import pytest

from layer_export.core.exceptions import FetchError
from layer_export.services import LayerFetcher, build_geojson_url, build_kml_url
from layer_export.services import fetcher as fetcher_module


def test_build_kml_url():
    url = build_kml_url("http://maps/geoserver", "/wms/kml?mode=download", "nics", "R12")
    assert url == "http://maps/geoserver/wms/kml?mode=download&bbox=-179,-89,179,89&layers=nics:R12"


def test_build_geojson_url():
    url = build_geojson_url("http://maps/geoserver", "nics:R12")
    assert url == (
        "http://maps/geoserver/wfs?service=WFS&version=1.0.0&request=GetFeature"
        "&outputFormat=application/json&srsName=EPSG:4326&typeName=nics:R12"
    )


def test_fetch_returns_payload(fetcher: LayerFetcher, http_client):
    http_client.queue("http://maps/layer", b"<kml/>")

    assert fetcher.fetch("http://maps/layer") == b"<kml/>"
    assert http_client.requested == ["http://maps/layer"]


def test_fetch_failure_and_empty_body_are_treated_alike(fetcher: LayerFetcher, http_client):
    http_client.queue("http://maps/empty", b"")

    assert fetcher.fetch("http://maps/unreachable") is None
    assert fetcher.fetch("http://maps/empty") is None


def test_http_client_wraps_network_errors(monkeypatch):
    def fake_urlopen(request, timeout):
        raise urllib_error.URLError("connection refused")

    monkeypatch.setattr(fetcher_module.urllib_request, "urlopen", fake_urlopen)

    with pytest.raises(FetchError) as excinfo:
        fetcher_module._HTTPClient().get_bytes("http://maps/layer", 5)
    assert excinfo.value.details == {"url": "http://maps/layer"}


def test_http_client_sends_headers_and_reads_body(monkeypatch):
    seen = {}

    def fake_urlopen(request, timeout):
        seen["agent"] = request.get_header("User-agent")
        seen["timeout"] = timeout
        return io.BytesIO(b"payload")

    monkeypatch.setattr(fetcher_module.urllib_request, "urlopen", fake_urlopen)

    assert fetcher_module._HTTPClient().get_bytes("http://maps/layer", 7) == b"payload"
    assert seen == {"agent": "LayerExport/1.0", "timeout": 7}


def test_http_client_wraps_truncated_bodies(monkeypatch):
    class TruncatedResponse(io.BytesIO):
        def read(self, *args):
            raise http.client.IncompleteRead(b"partial", 93)

    monkeypatch.setattr(fetcher_module.urllib_request, "urlopen", lambda request, timeout: TruncatedResponse())

    with pytest.raises(FetchError):
        fetcher_module._HTTPClient().get_bytes("http://maps/layer", 5)
    assert LayerFetcher(timeout=5).fetch("http://maps/layer") is None
