"""Shared fixtures: sample bog documents and a fake station installation."""

import io
import os
import stat
import sys
import zipfile
from pathlib import Path

import pytest

RESOURCES_DIR = Path(__file__).parent / "resources"

SAMPLE_BOG_XML = b"""<?xml version='1.0' encoding='UTF-8'?>
<bajaObjectGraph version="1.0" reversibleEncodingKeySource="none">
<p t="b:Station" m="b=baja">
<p n="Services" t="b:ServiceContainer">
<p n="WebService" m="web=web" t="web:WebService">
<p n="httpEnabled" v="true"/>
</p>
<p n="UserService" m="bsec=baja" t="b:UserService"/>
</p>
<p n="Drivers" m="driver=driver" t="driver:DriverContainer">
<p n="NiagaraNetwork" m="niagaraDriver=niagaraDriver" t="niagaraDriver:NiagaraNetwork">
<p n="foxService" m="fox=fox" t="fox:FoxService">
<p n="enabled" v="true"/>
</p>
</p>
</p>
</p>
</bajaObjectGraph>
"""


def make_archive(entries):
    """Build a zip archive from a mapping of entry name to bytes."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture
def sample_bog_file(tmp_path):
    """A valid bog file containing SAMPLE_BOG_XML."""
    path = tmp_path / "config.bog"
    path.write_bytes(make_archive({"file.xml": SAMPLE_BOG_XML}))
    return path


@pytest.fixture
def station_env(tmp_path):
    """A fake station installation.

    Returns a dict of StationConfig values pointing at a ``bin/station``
    launcher and a ``stations/node`` folder holding the sample bog file.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    launcher = bin_dir / "station"
    launcher.write_text(
        "#!/bin/sh\n"
        f'exec "{sys.executable}" "{RESOURCES_DIR / "fake_station.py"}" "$@"\n'
    )
    launcher.chmod(launcher.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    stations_dir = tmp_path / "stations"
    station_dir = stations_dir / "node"
    station_dir.mkdir(parents=True)
    (station_dir / "config.bog").write_bytes(make_archive({"file.xml": SAMPLE_BOG_XML}))

    return {
        "cwd": str(bin_dir),
        "stations_dir": str(stations_dir),
        "station_name": "node",
    }


@pytest.fixture
def clean_niagara_env(monkeypatch):
    """Remove NIAGARA_* variables so config defaults are predictable."""
    for name in ("NIAGARA_HOME", "NIAGARA_USER_HOME"):
        monkeypatch.delenv(name, raising=False)
    return os.environ


@pytest.fixture
def sample_bog_xml():
    return SAMPLE_BOG_XML


@pytest.fixture
def archive_factory():
    """The make_archive helper, for tests that build their own archives."""
    return make_archive
