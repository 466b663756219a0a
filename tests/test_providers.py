"""
Tests for replay providers and replay file loading.
"""

import json
import pytest
from unittest.mock import MagicMock

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from providers import (
    OrientationCapability,
    ReplayLocationProvider,
    ReplayOrientationProvider,
    load_replay_events,
)
from conftest import make_raw_event


class TestLoadReplayEvents:
    """Tests for loading recorded events from JSON."""

    def test_bare_list(self, tmp_path):
        path = tmp_path / "walk.json"
        path.write_text(json.dumps([make_raw_event(), make_raw_event(lon=10.5)]))

        events = load_replay_events(path)
        assert len(events) == 2
        assert events[1]["coords"]["longitude"] == 10.5

    def test_events_object(self, tmp_path):
        path = tmp_path / "walk.json"
        path.write_text(json.dumps({"events": [make_raw_event(), {"error": {"code": 3}}]}))

        events = load_replay_events(str(path))
        assert events[1] == {"error": {"code": 3}}

    def test_invalid_shape(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps("not a list"))

        with pytest.raises(ValueError, match="expected a list"):
            load_replay_events(path)


class TestReplayLocationProvider:
    """Tests for replaying location events to watches."""

    def test_push_without_watch(self):
        provider = ReplayLocationProvider()
        assert provider.push(make_raw_event()) is False
        assert provider.delivered_count == 0

    def test_routes_positions_and_errors(self):
        provider = ReplayLocationProvider()
        on_position, on_error = MagicMock(), MagicMock()
        provider.watch(on_position, on_error)

        provider.push(make_raw_event())
        provider.push({"error": {"code": 2, "message": "Position unavailable"}})

        on_position.assert_called_once()
        on_error.assert_called_once_with({"code": 2, "message": "Position unavailable"})

    def test_watch_ids_unique(self):
        provider = ReplayLocationProvider()
        first = provider.watch(MagicMock(), MagicMock())
        second = provider.watch(MagicMock(), MagicMock())
        assert first != second
        assert provider.active_watches == 2

    def test_replay_in_order(self):
        events = [make_raw_event(lon=float(i)) for i in range(3)]
        provider = ReplayLocationProvider(events)
        seen = []
        provider.watch(lambda e: seen.append(e["coords"]["longitude"]), MagicMock())

        assert provider.replay() == 3
        assert seen == [0.0, 1.0, 2.0]

    def test_replay_stops_when_cleared(self):
        """Clearing the watch mid-replay should leave the rest queued."""
        provider = ReplayLocationProvider([make_raw_event(lon=float(i)) for i in range(4)])
        watch_ids = []

        def on_position(event):
            if event["coords"]["longitude"] == 1.0:
                provider.clear_watch(watch_ids[0])

        watch_ids.append(provider.watch(on_position, MagicMock()))

        assert provider.replay() == 2
        assert provider.active_watches == 0

    def test_unavailable(self):
        assert ReplayLocationProvider(available=False).available is False


class TestReplayOrientationProvider:
    """Tests for scripted orientation behavior."""

    def test_capability_counted(self):
        provider = ReplayOrientationProvider(OrientationCapability.NONE)
        assert provider.capability() is OrientationCapability.NONE
        assert provider.capability_checks == 1

    def test_emit_without_watch(self):
        assert ReplayOrientationProvider().emit(10.0) is False

    def test_emit_to_watcher(self):
        provider = ReplayOrientationProvider()
        seen = []
        provider.watch(seen.append)

        assert provider.watching
        assert provider.emit(42.0) is True
        assert seen == [42.0]

    def test_replay_waits_for_watch(self):
        """Headings stay queued until the compass subscribes."""
        provider = ReplayOrientationProvider(headings=[10.0, 20.0])
        assert provider.replay() == 0

        seen = []
        provider.watch(seen.append)
        assert provider.replay() == 2
        assert seen == [10.0, 20.0]

    def test_denied_passes_error(self):
        provider = ReplayOrientationProvider(OrientationCapability.REQUIRES_PERMISSION, grant=False)
        on_granted, on_denied = MagicMock(), MagicMock()
        provider.request_permission(on_granted, on_denied)

        on_granted.assert_not_called()
        assert isinstance(on_denied.call_args[0][0], PermissionError)

    def test_deferred_answer(self):
        provider = ReplayOrientationProvider(OrientationCapability.REQUIRES_PERMISSION, deferred=True)
        on_granted = MagicMock()
        provider.request_permission(on_granted, MagicMock())
        on_granted.assert_not_called()

        provider.resolve_permission()
        provider.resolve_permission()
        on_granted.assert_called_once()
