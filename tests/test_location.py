"""Tests for the location module."""

import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock, patch

import requests

import prayertrack.location as loc_mod
from prayertrack.location import (
    DEFAULT_DESCRIPTION,
    DEFAULT_LOCATION,
    clear_manual_location,
    describe_location,
    get_location,
    load_manual_location,
    save_manual_location,
)


def _mock_response(body):
    mock_resp = MagicMock()
    mock_resp.json.return_value = body
    mock_resp.raise_for_status = MagicMock()
    return mock_resp


class TestGetLocation(unittest.TestCase):
    @patch("prayertrack.location.requests.get")
    def test_returns_location_on_success(self, mock_get):
        mock_get.return_value = _mock_response({
            "status": "success",
            "city": "Chittagong",
            "country": "Bangladesh",
            "lat": 22.33,
            "lon": 91.83,
            "timezone": "Asia/Dhaka",
        })

        loc = get_location()
        self.assertEqual(loc["city"], "Chittagong")
        self.assertAlmostEqual(loc["lat"], 22.33)
        self.assertEqual(loc["timezone"], "Asia/Dhaka")

    @patch("prayertrack.location.requests.get")
    def test_falls_back_on_failure(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("Network error")
        loc = get_location()
        self.assertEqual(loc, DEFAULT_LOCATION)
        self.assertEqual(loc["city"], "Dhaka")

    @patch("prayertrack.location.requests.get")
    def test_falls_back_on_api_error_status(self, mock_get):
        mock_get.return_value = _mock_response({"status": "fail", "message": "reserved range"})
        loc = get_location()
        self.assertEqual(loc["city"], DEFAULT_LOCATION["city"])


class TestDescribeLocation(unittest.TestCase):
    @patch("prayertrack.location.requests.get")
    def test_city_and_country(self, mock_get):
        mock_get.return_value = _mock_response(
            {"address": {"city": "Sylhet", "country": "Bangladesh"}}
        )
        self.assertEqual(describe_location(24.9, 91.87), "Sylhet, Bangladesh")

    @patch("prayertrack.location.requests.get")
    def test_falls_through_town_and_village(self, mock_get):
        mock_get.return_value = _mock_response(
            {"address": {"village": "Ciseeng", "country": "Indonesia"}}
        )
        self.assertEqual(describe_location(-6.55, 106.56), "Ciseeng, Indonesia")

    @patch("prayertrack.location.requests.get")
    def test_unknown_city(self, mock_get):
        mock_get.return_value = _mock_response({"address": {"country": "Bangladesh"}})
        self.assertEqual(describe_location(0, 0), "Unknown, Bangladesh")

    @patch("prayertrack.location.requests.get")
    def test_falls_back_on_failure(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")
        self.assertEqual(describe_location(0, 0), DEFAULT_DESCRIPTION)

    @patch("prayertrack.location.requests.get")
    def test_falls_back_without_address(self, mock_get):
        mock_get.return_value = _mock_response({"error": "Unable to geocode"})
        self.assertEqual(describe_location(0, 0), DEFAULT_DESCRIPTION)


class TestManualLocation(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.mkdtemp()
        self._orig_config_dir = loc_mod.CONFIG_DIR
        self._orig_config_file = loc_mod.CONFIG_FILE
        loc_mod.CONFIG_DIR = self._tmpdir
        loc_mod.CONFIG_FILE = os.path.join(self._tmpdir, "location.json")

    def tearDown(self):
        loc_mod.CONFIG_DIR = self._orig_config_dir
        loc_mod.CONFIG_FILE = self._orig_config_file
        shutil.rmtree(self._tmpdir, ignore_errors=True)

    def test_save_and_load_manual_location(self):
        loc = {
            "city": "Ciseeng",
            "country": "ID",
            "lat": -6.5567,
            "lon": 106.5614,
            "timezone": "Asia/Jakarta",
        }
        save_manual_location(loc)
        loaded = load_manual_location()
        self.assertIsNotNone(loaded)
        self.assertEqual(loaded["city"], "Ciseeng")
        self.assertAlmostEqual(loaded["lat"], -6.5567)

    def test_load_returns_none_when_no_file(self):
        self.assertIsNone(load_manual_location())

    def test_clear_manual_location(self):
        save_manual_location(dict(DEFAULT_LOCATION))
        self.assertIsNotNone(load_manual_location())
        clear_manual_location()
        self.assertIsNone(load_manual_location())

    def test_load_returns_none_for_invalid_json(self):
        with open(loc_mod.CONFIG_FILE, "w") as f:
            f.write("not valid json")
        self.assertIsNone(load_manual_location())

    def test_load_returns_none_for_missing_keys(self):
        with open(loc_mod.CONFIG_FILE, "w") as f:
            json.dump({"city": "Test"}, f)
        self.assertIsNone(load_manual_location())


if __name__ == "__main__":
    unittest.main()
