"""Classify the current time against the day's prayer-time table."""

from dataclasses import dataclass

from prayertrack.timemath import (
    add_minutes,
    format_12h,
    is_time_in_range,
    subtract_minutes,
    time_difference,
    to_minutes,
)

BASE_NAMES = ["Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha"]
PRAYERS = ["Fajr", "Dhuhr", "Asr", "Maghrib", "Isha"]
FRIDAY_PRAYERS = ["Fajr", "Jummah", "Asr", "Maghrib", "Isha"]

# Isha's window runs to the end of the day; past-midnight is not modelled.
END_OF_DAY = "23:59"

# Disliked windows around sunrise, solar noon and sunset (minutes).
SUNRISE_OFFSET_AFTER_FAJR = 90
ZENITH_MINUTES_BEFORE_DHUHR = 10
SUNSET_MINUTES_BEFORE_MAGHRIB = 15


class ScheduleError(ValueError):
    """The prayer-time table is incomplete, malformed or out of order."""


def base_name(prayer: str) -> str:
    """Jummah shares Dhuhr's slot in the table."""
    return "Dhuhr" if prayer == "Jummah" else prayer


def validate_timings(timings: dict) -> dict:
    """
    Check a table has all six base times, well-formed and non-decreasing.

    Returns a copy holding only the base names (Jummah is derived, not stored).
    """
    table = {}
    for name in BASE_NAMES:
        if name not in timings:
            raise ScheduleError(f"Missing time for {name}")
        try:
            to_minutes(timings[name])
        except ValueError as exc:
            raise ScheduleError(f"Bad time for {name}: {exc}") from exc
        table[name] = timings[name]

    for earlier, later in zip(BASE_NAMES, BASE_NAMES[1:]):
        if to_minutes(table[earlier]) > to_minutes(table[later]):
            raise ScheduleError(
                f"{earlier} ({table[earlier]}) is after {later} ({table[later]})"
            )
    return table


@dataclass
class NextPrayer:
    name: str
    time: str
    tomorrow: bool = False
    countdown: str | None = None

    def label(self) -> str:
        if self.tomorrow:
            return f"Next: {self.name} (Tomorrow) at {format_12h(self.time)}"
        return f"Next: {self.name} in {self.countdown} at {format_12h(self.time)}"


class WindowClassifier:
    """
    Answers "which prayer is it now?" for one day's timings.

    `now` arguments are 'HH:MM' strings in the schedule's local time.
    """

    def __init__(self, timings: dict, is_friday: bool = False):
        self.timings = validate_timings(timings)
        self.is_friday = is_friday

    @property
    def prayers(self) -> list:
        return list(FRIDAY_PRAYERS if self.is_friday else PRAYERS)

    def start_time_of(self, prayer: str) -> str:
        return self.timings[base_name(prayer)]

    def end_time_of(self, prayer: str) -> str:
        name = base_name(prayer)
        if name not in PRAYERS:
            raise KeyError(prayer)
        if name == "Fajr":
            return self.timings["Sunrise"]
        if name == "Isha":
            return END_OF_DAY
        return self.timings[PRAYERS[PRAYERS.index(name) + 1]]

    def is_forbidden_window(self, now: str) -> bool:
        t = self.timings
        current = to_minutes(now)
        windows = (
            (add_minutes(t["Fajr"], SUNRISE_OFFSET_AFTER_FAJR), t["Sunrise"], False),
            (subtract_minutes(t["Dhuhr"], ZENITH_MINUTES_BEFORE_DHUHR), t["Dhuhr"], False),
            (subtract_minutes(t["Maghrib"], SUNSET_MINUTES_BEFORE_MAGHRIB), t["Maghrib"], True),
        )
        for start, end, closed in windows:
            lo, hi = to_minutes(start), to_minutes(end)
            if lo <= current < hi or (closed and current == hi):
                return True
        return False

    def in_window(self, prayer: str, now: str) -> bool:
        return is_time_in_range(now, self.start_time_of(prayer), self.end_time_of(prayer))

    def is_active(self, prayer: str, now: str) -> bool:
        return self.in_window(prayer, now) and not self.is_forbidden_window(now)

    def is_forbidden(self, prayer: str, now: str) -> bool:
        return self.in_window(prayer, now) and self.is_forbidden_window(now)

    def active_prayer(self, now: str) -> str | None:
        for prayer in self.prayers:
            if self.is_active(prayer, now):
                return prayer
        return None

    def next_prayer(self, now: str) -> NextPrayer:
        current = to_minutes(now)
        for prayer in self.prayers:
            start = self.start_time_of(prayer)
            if to_minutes(start) > current:
                return NextPrayer(prayer, start, countdown=time_difference(now, start))
        # Tomorrow's Fajr; today's time stands in for it.
        return NextPrayer("Fajr", self.timings["Fajr"], tomorrow=True)
