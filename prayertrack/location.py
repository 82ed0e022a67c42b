"""Location detection using IP geolocation, reverse geocoding and manual config."""

import json
import logging
import os

import requests

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = {
    "city": "Dhaka",
    "country": "Bangladesh",
    "lat": 23.8103,
    "lon": 90.4125,
    "timezone": "Asia/Dhaka",
}
DEFAULT_DESCRIPTION = "Dhaka, Bangladesh"

IPAPI_URL = "http://ip-api.com/json/"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/reverse"
USER_AGENT = "prayertrack/0.1"

CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".prayertrack")
CONFIG_FILE = os.path.join(CONFIG_DIR, "location.json")

REQUIRED_KEYS = ("city", "country", "lat", "lon", "timezone")


def get_location(timeout: int = 5) -> dict:
    """
    Detect current location via IP geolocation.

    Returns a dict with: city, country, lat, lon, timezone.
    Falls back to DEFAULT_LOCATION on failure.
    """
    try:
        resp = requests.get(
            IPAPI_URL,
            params={"fields": "city,country,lat,lon,timezone,status,message"},
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("IP geolocation failed, using default location: %s", exc)
        return dict(DEFAULT_LOCATION)

    if data.get("status") != "success":
        logger.warning("IP geolocation refused: %s", data.get("message"))
        return dict(DEFAULT_LOCATION)
    return {
        "city": data.get("city", DEFAULT_LOCATION["city"]),
        "country": data.get("country", DEFAULT_LOCATION["country"]),
        "lat": float(data.get("lat", DEFAULT_LOCATION["lat"])),
        "lon": float(data.get("lon", DEFAULT_LOCATION["lon"])),
        "timezone": data.get("timezone", DEFAULT_LOCATION["timezone"]),
    }


def describe_location(lat: float, lon: float, timeout: int = 5) -> str:
    """Reverse-geocode coordinates to 'City, Country' for display."""
    try:
        resp = requests.get(
            NOMINATIM_URL,
            params={"lat": lat, "lon": lon, "format": "json"},
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
        )
        resp.raise_for_status()
        address = resp.json()["address"]
    except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
        logger.warning("Reverse geocoding failed: %s", exc)
        return DEFAULT_DESCRIPTION

    city = address.get("city") or address.get("town") or address.get("village") or "Unknown"
    country = address.get("country", "")
    return f"{city}, {country}"


def save_manual_location(location: dict) -> None:
    """Save a manually-set location to the config file."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(location, f, indent=2)


def load_manual_location() -> dict | None:
    """Load a previously saved manual location, or return None."""
    if not os.path.isfile(CONFIG_FILE):
        return None
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable location config: %s", exc)
        return None
    if isinstance(data, dict) and all(k in data for k in REQUIRED_KEYS):
        return data
    return None


def clear_manual_location() -> None:
    """Remove the saved manual location config."""
    if os.path.isfile(CONFIG_FILE):
        os.remove(CONFIG_FILE)
