"""Tests for the prayer_api module."""

import copy
import datetime
import unittest
from unittest.mock import MagicMock, patch

import requests

from prayertrack.prayer_api import (
    DEFAULT_TIMINGS,
    HIJRI_UNAVAILABLE,
    fetch_prayer_times,
    hijri_label,
    is_friday,
    load_schedule,
)

MOCK_RESPONSE = {
    "code": 200,
    "status": "OK",
    "data": {
        "timings": {
            "Fajr": "04:30",
            "Sunrise": "05:55",
            "Dhuhr": "12:00",
            "Asr": "15:30",
            "Maghrib": "18:15",
            "Isha": "19:30",
            "Midnight": "00:00",
            "Imsak": "04:20",
        },
        "date": {
            "gregorian": {
                "date": "07-03-2025",
                "weekday": {"en": "Friday"},
            },
            "hijri": {
                "day": "7",
                "month": {"en": "Ramadan", "ar": "رَمَضان"},
                "year": "1446",
            },
        },
    },
}


def _mock_response(body):
    mock_resp = MagicMock()
    mock_resp.json.return_value = body
    mock_resp.raise_for_status = MagicMock()
    return mock_resp


class TestFetchPrayerTimes(unittest.TestCase):
    @patch("prayertrack.prayer_api.requests.get")
    def test_returns_timings_and_hijri(self, mock_get):
        mock_get.return_value = _mock_response(MOCK_RESPONSE)

        result = fetch_prayer_times(23.8, 90.4, datetime.date(2025, 3, 7))

        self.assertEqual(result["timings"]["Fajr"], "04:30")
        self.assertEqual(result["timings"]["Sunrise"], "05:55")
        self.assertNotIn("Imsak", result["timings"])
        self.assertEqual(result["hijri"]["month_name"], "Ramadan")
        self.assertEqual(set(result), {"timings", "hijri"})

    @patch("prayertrack.prayer_api.requests.get")
    def test_requests_method_and_school(self, mock_get):
        mock_get.return_value = _mock_response(MOCK_RESPONSE)

        fetch_prayer_times(23.8, 90.4, datetime.date(2025, 3, 7))

        url = mock_get.call_args[0][0]
        params = mock_get.call_args[1]["params"]
        self.assertTrue(url.endswith("/timings/07-03-2025"))
        self.assertEqual(params["method"], 2)
        self.assertEqual(params["school"], 1)

    @patch("prayertrack.prayer_api.requests.get")
    def test_strips_timezone_suffix(self, mock_get):
        response = copy.deepcopy(MOCK_RESPONSE)
        response["data"]["timings"]["Fajr"] = "04:30 (PKT)"
        mock_get.return_value = _mock_response(response)

        result = fetch_prayer_times(23.8, 90.4)
        self.assertEqual(result["timings"]["Fajr"], "04:30")

    @patch("prayertrack.prayer_api.requests.get")
    def test_missing_hijri_is_none(self, mock_get):
        response = copy.deepcopy(MOCK_RESPONSE)
        del response["data"]["date"]["hijri"]
        mock_get.return_value = _mock_response(response)

        result = fetch_prayer_times(23.8, 90.4)
        self.assertIsNone(result["hijri"])

    @patch("prayertrack.prayer_api.requests.get")
    def test_raises_on_api_error(self, mock_get):
        mock_get.return_value = _mock_response({"code": 400, "status": "Bad Request"})

        with self.assertRaises(ValueError):
            fetch_prayer_times(23.8, 90.4)


class TestLoadSchedule(unittest.TestCase):
    @patch("prayertrack.prayer_api.requests.get")
    def test_uses_api_times(self, mock_get):
        mock_get.return_value = _mock_response(MOCK_RESPONSE)

        schedule = load_schedule(23.8, 90.4, datetime.date(2025, 3, 7))

        self.assertFalse(schedule.fallback)
        self.assertEqual(schedule.timings["Maghrib"], "18:15")
        self.assertEqual(schedule.hijri, "7 Ramadan 1446 AH")
        self.assertTrue(schedule.is_friday)

    @patch("prayertrack.prayer_api.requests.get")
    def test_falls_back_on_network_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("offline")

        schedule = load_schedule(23.8, 90.4, datetime.date(2025, 3, 6))

        self.assertTrue(schedule.fallback)
        self.assertEqual(schedule.timings, DEFAULT_TIMINGS)
        self.assertEqual(schedule.hijri, HIJRI_UNAVAILABLE)
        self.assertFalse(schedule.is_friday)

    @patch("prayertrack.prayer_api.requests.get")
    def test_falls_back_on_malformed_times(self, mock_get):
        response = copy.deepcopy(MOCK_RESPONSE)
        response["data"]["timings"]["Asr"] = "--:--"
        mock_get.return_value = _mock_response(response)

        schedule = load_schedule(23.8, 90.4, datetime.date(2025, 3, 7))

        self.assertTrue(schedule.fallback)
        self.assertEqual(schedule.timings["Asr"], DEFAULT_TIMINGS["Asr"])
        self.assertTrue(schedule.is_friday)

    @patch("prayertrack.prayer_api.requests.get")
    def test_falls_back_on_missing_prayer(self, mock_get):
        response = copy.deepcopy(MOCK_RESPONSE)
        del response["data"]["timings"]["Isha"]
        mock_get.return_value = _mock_response(response)

        self.assertTrue(load_schedule(23.8, 90.4).fallback)


class TestHelpers(unittest.TestCase):
    def test_is_friday(self):
        self.assertTrue(is_friday(datetime.date(2025, 3, 7)))
        self.assertFalse(is_friday(datetime.date(2025, 3, 8)))

    def test_hijri_label(self):
        hijri = {"day": "1", "month_name": "Shawwal", "year": "1446"}
        self.assertEqual(hijri_label(hijri), "1 Shawwal 1446 AH")

    def test_hijri_label_is_deterministic_placeholder(self):
        self.assertEqual(hijri_label(None), HIJRI_UNAVAILABLE)
        self.assertEqual(hijri_label({}), hijri_label({}))


if __name__ == "__main__":
    unittest.main()
