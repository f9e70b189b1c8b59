from __future__ import annotations

import logging
import zipfile
from pathlib import Path

from layer_export.core import IconReference
from layer_export.services import IconResolver, KmzPackager


def test_package_places_kml_at_root_and_icons_under_images(tmp_path: Path, symbology_root: Path):
    kml = tmp_path / "layer.kml"
    kml.write_text("<kml><href>images/sub/flag.png</href></kml>")
    icons = [symbology_root / "sub" / "flag.png", symbology_root / "marker.png"]

    output = KmzPackager(symbology_root).package(kml, icons, tmp_path / "layer.kmz")

    assert output == tmp_path / "layer.kmz"
    with zipfile.ZipFile(output) as archive:
        assert archive.namelist() == ["layer.kml", "images/sub/flag.png", "images/marker.png"]
        assert archive.read("layer.kml") == kml.read_bytes()
        assert archive.read("images/sub/flag.png") == icons[0].read_bytes()
        assert archive.read("images/marker.png") == icons[1].read_bytes()


def test_package_writes_each_icon_once(tmp_path: Path, symbology_root: Path):
    kml = tmp_path / "layer.kml"
    kml.write_text("<kml/>")
    icon = symbology_root / "marker.png"

    output = KmzPackager(symbology_root).package(kml, [icon, icon], tmp_path / "layer.kmz", kml_entry_name="doc.kml")

    with zipfile.ZipFile(output) as archive:
        assert archive.namelist() == ["doc.kml", "images/marker.png"]


def test_package_returns_none_when_archive_cannot_be_written(tmp_path: Path, symbology_root: Path, caplog):
    kml = tmp_path / "layer.kml"
    kml.write_text("<kml/>")

    with caplog.at_level(logging.ERROR):
        assert KmzPackager(symbology_root).package(kml, [], tmp_path / "missing" / "layer.kmz") is None


def test_entry_name_outside_root_falls_back_to_file_name(tmp_path: Path, symbology_root: Path):
    stray = tmp_path / "stray.png"

    assert KmzPackager(symbology_root).entry_name(stray) == "images/stray.png"


def test_resolver_skips_missing_icons(symbology_root: Path, caplog):
    resolver = IconResolver(symbology_root)
    references = [
        IconReference("https://host/upload/symbology/sub/flag.png", "sub/flag.png"),
        IconReference("https://host/upload/symbology/gone.png", "gone.png"),
        IconReference("https://host/upload/symbology/sub/flag.png", "sub/flag.png"),
    ]

    with caplog.at_level(logging.WARNING):
        resolved = resolver.resolve(references)

    assert resolved == [symbology_root / "sub" / "flag.png"]
    assert "missing icon" in caplog.text


def test_resolver_rejects_paths_escaping_root(symbology_root: Path, tmp_path: Path):
    (tmp_path / "secret.png").write_bytes(b"secret")
    resolver = IconResolver(symbology_root)

    assert resolver.resolve([IconReference("https://host/x", "../secret.png")]) == []
