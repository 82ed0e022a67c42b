"""Fetch the day's prayer times and Hijri date from the Aladhan API."""

import datetime
import logging
from dataclasses import dataclass

import requests

from prayertrack.classifier import BASE_NAMES, validate_timings

logger = logging.getLogger(__name__)

ALADHAN_BASE = "https://api.aladhan.com/v1"

# 2 = ISNA; school 1 = Hanafi (later Asr)
DEFAULT_METHOD = 2
DEFAULT_SCHOOL = 1

# Used when the API is unreachable or returns something unusable.
DEFAULT_TIMINGS = {
    "Fajr": "05:00",
    "Sunrise": "06:15",
    "Dhuhr": "12:15",
    "Asr": "15:45",
    "Maghrib": "18:00",
    "Isha": "19:30",
}

HIJRI_UNAVAILABLE = "Hijri date unavailable"

PRAYER_DISPLAY = {
    "Fajr": {"arabic": "الفجر", "icon": "🌅"},
    "Dhuhr": {"arabic": "الظهر", "icon": "☀️"},
    "Jummah": {"arabic": "الجمعة", "icon": "🕌"},
    "Asr": {"arabic": "العصر", "icon": "🌤️"},
    "Maghrib": {"arabic": "المغرب", "icon": "🌇"},
    "Isha": {"arabic": "العشاء", "icon": "🌙"},
}


@dataclass
class Schedule:
    timings: dict
    date: datetime.date
    hijri: str = HIJRI_UNAVAILABLE
    fallback: bool = False

    @property
    def is_friday(self) -> bool:
        return is_friday(self.date)


def is_friday(date: datetime.date) -> bool:
    return date.weekday() == 4


def hijri_label(hijri: dict | None) -> str:
    """'5 Ramadan 1446 AH', or the unavailable placeholder."""
    if not hijri or not hijri.get("day") or not hijri.get("month_name"):
        return HIJRI_UNAVAILABLE
    return f"{hijri['day']} {hijri['month_name']} {hijri['year']} AH"


def fetch_prayer_times(
    lat: float,
    lon: float,
    date: datetime.date = None,
    method: int = DEFAULT_METHOD,
    school: int = DEFAULT_SCHOOL,
) -> dict:
    """
    Fetch prayer times and Hijri date for given coordinates and date.

    Returns a dict with:
        timings: {prayer_name: "HH:MM"} for Fajr, Sunrise and the five prayers
        hijri: {day, month_name, month_ar, year} or None if the API omits it
    Raises requests.RequestException or ValueError on failure.
    """
    if date is None:
        date = datetime.date.today()
    date_str = date.strftime("%d-%m-%Y")
    url = f"{ALADHAN_BASE}/timings/{date_str}"
    params = {
        "latitude": lat,
        "longitude": lon,
        "method": method,
        "school": school,
    }
    resp = requests.get(url, params=params, timeout=10)
    resp.raise_for_status()
    body = resp.json()
    if body.get("code") != 200:
        raise ValueError(f"Aladhan API error: {body.get('status')}")

    data = body["data"]
    raw_timings = data["timings"]

    # Keep only the six times we classify against (strip " (PKT)" suffixes)
    timings = {}
    for name in BASE_NAMES:
        if name not in raw_timings:
            raise ValueError(f"Aladhan response has no {name} time")
        timings[name] = raw_timings[name][:5]

    date_data = data.get("date", {})
    hijri = None
    hijri_data = date_data.get("hijri")
    if hijri_data:
        hijri = {
            "day": hijri_data.get("day"),
            "month_name": hijri_data.get("month", {}).get("en"),
            "month_ar": hijri_data.get("month", {}).get("ar"),
            "year": hijri_data.get("year"),
        }

    return {"timings": timings, "hijri": hijri}


def load_schedule(lat: float, lon: float, date: datetime.date = None) -> Schedule:
    """
    Fetch and validate today's schedule, falling back to DEFAULT_TIMINGS.

    Never raises for network or data problems; the result's `fallback`
    flag says whether the defaults were used.
    """
    if date is None:
        date = datetime.date.today()
    try:
        result = fetch_prayer_times(lat, lon, date)
        timings = validate_timings(result["timings"])
    except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
        # ScheduleError is a ValueError
        logger.warning("Using default prayer times for %s: %s", date, exc)
        return Schedule(dict(DEFAULT_TIMINGS), date, fallback=True)
    return Schedule(timings, date, hijri=hijri_label(result["hijri"]))

