"""
Tests for recorded track models, GPX export and track sinks.
"""

import pytest
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from io import StringIO

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from track_export import GpxTrackSink, LoggingTrackSink, TrackRecording, write_gpx
from track_export.gpx_writer import NS_ACCURACY, NS_GARMIN, NS_GPX, _format_time
from conftest import make_sample

NS = {"gpx": NS_GPX, "gpxtpx": NS_GARMIN, "acc": NS_ACCURACY}


@pytest.fixture
def track():
    """Two-point track about 105 m long, one point with full readings."""
    return TrackRecording(
        name="Test Track",
        samples=[
            make_sample(lon=10.0, lat=20.0, accuracy=5.0, seconds=0),
            make_sample(lon=10.001, lat=20.0, accuracy=3.5, seconds=10,
                        altitude_m=120.5, altitude_accuracy_m=8.0,
                        heading_deg=90.0, speed_mps=10.5),
        ],
    )


def parse(track: TrackRecording) -> ET.Element:
    output = StringIO()
    write_gpx(track, output)
    return ET.fromstring(output.getvalue().split("\n", 1)[1])


class TestTrackRecording:
    """Tests for TrackRecording properties."""

    def test_empty(self):
        track = TrackRecording()
        assert track.is_empty
        assert len(track) == 0
        assert track.start_time is None
        assert track.duration_seconds == 0.0
        assert track.distance_meters == 0.0

    def test_duration(self, track):
        assert track.duration_seconds == 10.0
        assert track.end_time == datetime(2026, 1, 9, 11, 35, 48, tzinfo=timezone.utc)

    def test_distance_geodesic(self, track):
        """0.001 degrees of longitude at 20N is about 104.6 m."""
        assert track.distance_meters == pytest.approx(104.6, abs=0.5)

    def test_single_sample_no_distance(self):
        track = TrackRecording(samples=[make_sample()])
        assert track.distance_meters == 0.0


class TestGpxWriter:
    """Tests for GPX 1.1 output."""

    def test_declaration(self, track):
        output = StringIO()
        write_gpx(track, output)
        assert output.getvalue().startswith('<?xml version="1.0" encoding="UTF-8"?>')

    def test_root_and_metadata(self, track):
        root = parse(track)
        assert root.tag == f"{{{NS_GPX}}}gpx"
        assert root.get("version") == "1.1"
        assert root.find("gpx:metadata/gpx:name", NS).text == "Test Track"
        assert root.find("gpx:metadata/gpx:time", NS).text == "2026-01-09T11:35:38.000Z"

    def test_trackpoints(self, track):
        points = parse(track).findall("gpx:trk/gpx:trkseg/gpx:trkpt", NS)
        assert len(points) == 2
        assert points[0].get("lat") == "20.0000000"
        assert points[1].get("lon") == "10.0010000"

    def test_unknown_readings_omitted(self, track):
        """Unknown altitude, speed and heading should be left out, not zeroed."""
        first = parse(track).findall("gpx:trk/gpx:trkseg/gpx:trkpt", NS)[0]
        assert first.find("gpx:ele", NS) is None
        assert first.find("gpx:extensions/gpxtpx:TrackPointExtension", NS) is None
        assert first.find("gpx:extensions/acc:Accuracy/acc:vertical", NS) is None

    def test_known_readings_written(self, track):
        second = parse(track).findall("gpx:trk/gpx:trkseg/gpx:trkpt", NS)[1]
        assert second.find("gpx:ele", NS).text == "120.50"
        ext = second.find("gpx:extensions/gpxtpx:TrackPointExtension", NS)
        assert ext.find("gpxtpx:speed", NS).text == "10.50"
        assert ext.find("gpxtpx:course", NS).text == "90.0"
        accuracy = second.find("gpx:extensions/acc:Accuracy", NS)
        assert accuracy.find("acc:horizontal", NS).text == "3.5"
        assert accuracy.find("acc:vertical", NS).text == "8.0"

    def test_ele_before_time(self, track):
        second = parse(track).findall("gpx:trk/gpx:trkseg/gpx:trkpt", NS)[1]
        tags = [child.tag.split("}")[1] for child in second]
        assert tags.index("ele") < tags.index("time")

    def test_empty_track(self):
        """An empty recording still produces a valid document."""
        root = parse(TrackRecording())
        assert root.find("gpx:metadata/gpx:time", NS) is None
        assert root.findall("gpx:trk/gpx:trkseg/gpx:trkpt", NS) == []

    def test_format_time_naive_as_utc(self):
        assert _format_time(datetime(2026, 1, 9, 12, 0, 0, 250000)) == "2026-01-09T12:00:00.250Z"


class TestSinks:
    """Tests for the track sinks."""

    def test_logging_sink(self, track, caplog):
        sink = LoggingTrackSink()
        with caplog.at_level("DEBUG", logger="track_export.sinks"):
            sink(track)

        assert sink.flushed_count == 1
        assert "Recorded positions: 2" in caplog.text
        assert "10.001000, 20.000000" in caplog.text

    def test_logging_sink_summary(self, track, monkeypatch):
        shown = []
        monkeypatch.setattr("rich_console.print_track_summary", shown.append)
        LoggingTrackSink(show_summary=True)(track)
        assert shown == [track]

    def test_gpx_sink(self, track):
        output = StringIO()
        sink = GpxTrackSink(output)
        sink(track)
        assert sink.written_count == 1
        assert output.getvalue().count("<trkpt ") == 2

    def test_gpx_sink_skips_empty(self):
        output = StringIO()
        sink = GpxTrackSink(output)
        sink(TrackRecording())
        assert sink.written_count == 0
        assert output.getvalue() == ""
