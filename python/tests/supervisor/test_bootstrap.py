"""Tests for station folder bootstrapping and copy_and_run."""

import shutil
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from station_supervisor.exceptions import (
    MissingSourceStationError,
    ProcessSpawnError,
    StationError,
)
from station_supervisor.supervisor.bootstrap import copy_and_run, ensure_station_folder
from station_supervisor.supervisor.config import StationConfig

TIMEOUT = 10


@pytest.fixture
def source_station(tmp_path, sample_bog_file):
    """A station folder to copy from, holding config.bog and a nested file."""
    source = tmp_path / "source" / "node"
    (source / "shared").mkdir(parents=True)
    shutil.copy(sample_bog_file, source / "config.bog")
    (source / "shared" / "notes.txt").write_text("from source")
    return source


@pytest.fixture
def stations_dir(tmp_path):
    path = tmp_path / "user" / "stations"
    path.mkdir(parents=True)
    return path


def make_config(stations_dir, **overrides):
    return StationConfig.build(cwd=str(stations_dir), stations_dir=str(stations_dir), **overrides)


class TestEnsureStationFolder:
    """Test ensure_station_folder()."""

    def test_copies_missing_station(self, stations_dir, source_station):
        config = make_config(stations_dir, source_station_folder=str(source_station))

        ensure_station_folder(config)

        assert (stations_dir / "node" / "config.bog").exists()
        assert (stations_dir / "node" / "shared" / "notes.txt").read_text() == "from source"

    def test_existing_station_is_left_alone(self, stations_dir, source_station):
        existing = stations_dir / "node"
        existing.mkdir()
        (existing / "marker.txt").write_text("keep")
        config = make_config(stations_dir, source_station_folder=str(source_station))

        ensure_station_folder(config)

        assert not (existing / "config.bog").exists()
        assert (existing / "marker.txt").read_text() == "keep"

    def test_existing_station_without_source_is_fine(self, stations_dir):
        (stations_dir / "node").mkdir()

        ensure_station_folder(make_config(stations_dir))

    def test_force_copy_overwrites(self, stations_dir, source_station):
        existing = stations_dir / "node" / "shared"
        existing.mkdir(parents=True)
        (existing / "notes.txt").write_text("stale")
        (existing / "extra.txt").write_text("extra")
        config = make_config(
            stations_dir, source_station_folder=str(source_station), force_copy=True
        )

        ensure_station_folder(config)

        assert (existing / "notes.txt").read_text() == "from source"
        assert (existing / "extra.txt").read_text() == "extra"
        assert (stations_dir / "node" / "config.bog").exists()

    def test_missing_station_without_source_raises(self, stations_dir):
        with pytest.raises(MissingSourceStationError, match="does not exist"):
            ensure_station_folder(make_config(stations_dir))

        assert not (stations_dir / "node").exists()

    def test_force_copy_without_source_raises(self, stations_dir):
        (stations_dir / "node").mkdir()

        with pytest.raises(MissingSourceStationError):
            ensure_station_folder(make_config(stations_dir, force_copy=True))

    def test_missing_stations_dir_raises(self, tmp_path, source_station):
        config = make_config(
            tmp_path / "nowhere", source_station_folder=str(source_station)
        )

        with pytest.raises(StationError, match="does not exist"):
            ensure_station_folder(config)

    def test_missing_source_folder_raises(self, stations_dir, tmp_path):
        config = make_config(stations_dir, source_station_folder=str(tmp_path / "gone"))

        with pytest.raises(StationError, match="Failed to copy station"):
            ensure_station_folder(config)


class TestCopyAndRun:
    """Test copy_and_run()."""

    def test_copies_then_starts(self, station_env, source_station, tmp_path):
        stations_dir = tmp_path / "fresh"
        stations_dir.mkdir()
        ready = threading.Event()

        station = copy_and_run(
            station_env,
            on_ready=ready.set,
            stations_dir=str(stations_dir),
            source_station_folder=str(source_station),
            bog_overrides={"foxPort": 1911},
        )
        try:
            assert ready.wait(TIMEOUT)
            assert Path(station.config.bog_file_path).exists()
        finally:
            station.quit(timeout=TIMEOUT)

    def test_bootstrap_failure_does_not_spawn(self, station_env, tmp_path):
        stations_dir = tmp_path / "empty"
        stations_dir.mkdir()

        with patch("station_supervisor.supervisor.bootstrap.Station") as mock_station:
            with pytest.raises(MissingSourceStationError):
                copy_and_run(station_env, stations_dir=str(stations_dir))

        mock_station.assert_not_called()

    def test_spawn_failure_propagates(self, station_env):
        with pytest.raises(ProcessSpawnError):
            copy_and_run(station_env, command="no-such-station")
