"""
Tests for the info panel readout.
"""

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from info_readout import InfoReadout, format_sample
from conftest import make_sample


class TestFormatSample:
    """Tests for panel text formatting."""

    def test_coordinates_six_decimals(self):
        text = format_sample(make_sample(lon=10.1234567, lat=-20.5, accuracy=5.0))
        assert "Long: 10.123457 | Lat: -20.500000 (±5 m)" in text

    def test_unknown_readings(self, sample):
        """Unknown readings should show as N/A."""
        lines = format_sample(sample).splitlines()
        assert lines[1] == "Altitude: N/A"
        assert lines[2] == "Heading: N/A"
        assert lines[3] == "Speed: N/A"

    def test_zero_readings_shown(self):
        """Zero is a real reading, not N/A."""
        text = format_sample(make_sample(altitude_m=0.0, heading_deg=0.0, speed_mps=0.0))
        assert "Altitude: 0.00 m" in text
        assert "Heading: 0.00°" in text
        assert "Speed: 0.00 m/s" in text

    def test_altitude_with_accuracy(self):
        text = format_sample(make_sample(altitude_m=123.456, altitude_accuracy_m=4.0))
        assert "Altitude: 123.46 m (±4 m)" in text

    def test_heading_and_speed(self):
        text = format_sample(make_sample(heading_deg=271.349, speed_mps=1.234))
        assert "Heading: 271.35°" in text
        assert "Speed: 1.23 m/s" in text


class TestInfoReadout:
    """Tests for the readout component."""

    def test_placeholder(self):
        assert InfoReadout().text == "My Location"

    def test_updates_on_sample(self, sample):
        readout = InfoReadout()
        readout.on_sample(sample)
        assert readout.text.startswith("Long: 10.000000")
        assert readout.last_sample is sample

    def test_on_change_callback(self, sample):
        seen = []
        readout = InfoReadout(on_change=seen.append)
        readout.on_sample(sample)
        assert seen == [readout.text]
