"""Map-server requests for layer documents."""

from __future__ import annotations

import logging
import http.client
from typing import Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

from ..core.exceptions import FetchError

logger = logging.getLogger(__name__)

KML_ATTRIBS = "&bbox=-179,-89,179,89&layers="
WFS_PATH = "/wfs"
GEOJSON_QUERY = (
    "?service=WFS&version=1.0.0&request=GetFeature"
    "&outputFormat=application/json&srsName=EPSG:4326&typeName="
)


def build_kml_url(mapserver_url: str, kml_export_path: str, workspace: str, layer_name: str) -> str:
    """WMS KML request for ``<workspace>:<layer_name>`` covering the whole globe."""

    return f"{mapserver_url}{kml_export_path}{KML_ATTRIBS}{workspace}:{layer_name}"


def build_geojson_url(mapserver_url: str, layer_name: str) -> str:
    """WFS GetFeature request returning ``layer_name`` as GeoJSON in EPSG:4326."""

    return f"{mapserver_url}{WFS_PATH}{GEOJSON_QUERY}{layer_name}"


class HttpClient(Protocol):
    def get_bytes(self, url: str, timeout: int) -> bytes: ...


class _HTTPClient:
    """Small wrapper around :func:`urllib.request.urlopen` with headers."""

    _DEFAULT_HEADERS = {"User-Agent": "LayerExport/1.0"}

    def get_bytes(self, url: str, timeout: int) -> bytes:
        request = urllib_request.Request(url, headers=self._DEFAULT_HEADERS)
        try:
            with urllib_request.urlopen(request, timeout=timeout) as response:
                return response.read()
        except (urllib_error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
            raise FetchError(f"Request failed: {exc}", details={"url": url}) from exc


class LayerFetcher:
    """Issue a single GET against the map server.

    Failures and empty bodies both come back as ``None``; the caller turns
    either into an error document.
    """

    def __init__(self, http_client: HttpClient | None = None, timeout: int = 60):
        self.http_client = http_client or _HTTPClient()
        self.timeout = timeout

    def fetch(self, url: str) -> bytes | None:
        logger.debug("Requesting layer from %s", url)
        try:
            payload = self.http_client.get_bytes(url, self.timeout)
        except FetchError as exc:
            logger.warning("Layer request failed: %s", exc)
            return None

        if not payload:
            logger.warning("Layer request to %s returned an empty document", url)
            return None
        return payload
