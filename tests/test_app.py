"""Tests for the widget's tick and load wiring (no display needed)."""

import datetime
import importlib.util
import unittest
from unittest.mock import MagicMock, patch

from prayertrack.controller import PrayerController
from prayertrack.prayer_api import DEFAULT_TIMINGS, Schedule
from prayertrack.storage import MemoryStore

HAS_TK = importlib.util.find_spec("tkinter") is not None

THURSDAY = datetime.date(2025, 3, 6)


def make_app(controller):
    """Build the widget around a mocked Tk root, skipping window construction."""
    import prayertrack_app

    app = prayertrack_app.PrayerTrackerApp.__new__(prayertrack_app.PrayerTrackerApp)
    app.root = MagicMock()
    app.root.after.side_effect = lambda ms, fn: f"after#{ms}"
    app.controller = controller
    app.lbl_location = MagicMock()
    app._check_vars = {}
    app._status_job = None
    return app


@unittest.skipUnless(HAS_TK, "tkinter not available")
class TestStatusTickArming(unittest.TestCase):
    def setUp(self):
        import prayertrack_app
        self.status_ms = prayertrack_app.STATUS_MS

    def test_failed_reload_rearms_when_schedule_loaded(self):
        controller = PrayerController(store=MemoryStore())
        controller.apply_schedule(Schedule(dict(DEFAULT_TIMINGS), THURSDAY))
        app = make_app(controller)

        app._on_data_error("connection refused")

        app.root.after.assert_called_once_with(self.status_ms, app._status_tick)
        self.assertIsNotNone(app._status_job)

    def test_failed_first_load_does_not_arm(self):
        app = make_app(PrayerController(store=MemoryStore()))

        app._on_data_error("connection refused")

        app.root.after.assert_not_called()
        self.assertIsNone(app._status_job)

    def test_rearming_cancels_pending_tick(self):
        app = make_app(PrayerController(store=MemoryStore()))
        app._arm_status_tick()
        first = app._status_job

        app._arm_status_tick()

        app.root.after_cancel.assert_called_once_with(first)

    def test_loaded_data_is_applied_on_callback(self):
        controller = MagicMock()
        controller.location_label = "Dhaka, Bangladesh"
        app = make_app(controller)
        loaded = object()

        with patch.object(app, "_render"):
            app._on_data_loaded(loaded)

        controller.apply.assert_called_once_with(loaded)
        app.root.after.assert_called_once_with(self.status_ms, app._status_tick)

    def test_worker_only_fetches(self):
        controller = MagicMock()
        app = make_app(controller)

        app._load_data()

        controller.fetch.assert_called_once_with()
        controller.apply.assert_not_called()


@unittest.skipUnless(HAS_TK, "tkinter not available")
class TestCheckbox(unittest.TestCase):
    def test_toggle_goes_through_controller(self):
        controller = MagicMock()
        app = make_app(controller)
        app._check_vars["Asr"] = MagicMock(**{"get.return_value": True})

        with patch.object(app, "_render"):
            app._on_toggle("Asr")

        controller.toggle.assert_called_once_with("Asr", True)


if __name__ == "__main__":
    unittest.main()
