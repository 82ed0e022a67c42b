"""
Single owner of the widget's state.

The view reads `snapshot()` and calls back only through `toggle()`;
everything else is driven by `fetch()` / `apply()` and the once-a-minute
`status_tick()`. Only fetch() may run off the Tk thread.
"""

import datetime
import logging
from dataclasses import dataclass, field

import pytz

from prayertrack.classifier import WindowClassifier
from prayertrack.location import (
    describe_location,
    get_location,
    load_manual_location,
)
from prayertrack.prayer_api import PRAYER_DISPLAY, Schedule, load_schedule
from prayertrack.storage import MemoryStore
from prayertrack.timemath import hhmm
from prayertrack.tracker import CompletionTracker

logger = logging.getLogger(__name__)


def timezone_for(location: dict) -> datetime.tzinfo:
    try:
        return pytz.timezone(location["timezone"])
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown timezone %r, using UTC", location["timezone"])
        return pytz.utc


@dataclass
class PrayerView:
    name: str
    arabic: str
    icon: str
    start: str
    end: str
    is_active: bool
    is_forbidden: bool
    is_completed: bool

    @property
    def checkbox_label(self) -> str:
        return "Attended Jummah Prayer" if self.name == "Jummah" else "Mark as Prayed"


@dataclass
class Snapshot:
    prayers: list = field(default_factory=list)
    completed_count: int = 0
    remaining_count: int = 5
    missed_counts: dict = field(default_factory=dict)
    next_label: str = "Loading prayer times…"
    forbidden_banner: bool = False
    hijri: str = ""
    location: str = ""
    fallback: bool = False


@dataclass
class Loaded:
    location: dict
    tz: datetime.tzinfo
    schedule: Schedule
    location_label: str


@dataclass
class TickResult:
    newly_missed: list = field(default_factory=list)
    entered_forbidden: bool = False
    rolled_over: bool = False


class PrayerController:
    def __init__(self, store=None, tz=None):
        self.store = store if store is not None else MemoryStore()
        self.tracker = CompletionTracker(self.store)
        self.tz = tz or pytz.utc
        self.location: dict = {}
        self.location_label = ""
        self.schedule: Schedule | None = None
        self.classifier: WindowClassifier | None = None
        self._in_forbidden = False

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(self.tz)

    def fetch(self, location: dict | None = None, today: datetime.date | None = None) -> Loaded:
        """
        Network half of a load: location, timezone, schedule and label.

        Changes nothing on the controller or tracker, so the widget runs it
        on a worker thread and hands the result to apply() on the Tk thread.
        """
        if location is None:
            location = load_manual_location() or get_location()
        tz = timezone_for(location)
        if today is None:
            today = datetime.datetime.now(tz).date()
        schedule = load_schedule(location["lat"], location["lon"], today)
        label = describe_location(location["lat"], location["lon"])
        return Loaded(location, tz, schedule, label)

    def apply(self, loaded: Loaded, now: datetime.datetime | None = None) -> None:
        """Install a fetch() result and run the startup checks."""
        self.location = loaded.location
        self.tz = loaded.tz
        self.location_label = loaded.location_label
        now = now or self.now()
        self.apply_schedule(loaded.schedule)
        self.tracker.check_daily_reset(now)
        self.tracker.check_missed(now)

    def load(self, location: dict | None = None, now: datetime.datetime | None = None) -> Schedule:
        """fetch() then apply(), both on the calling thread."""
        loaded = self.fetch(location, now.date() if now else None)
        self.apply(loaded, now)
        return loaded.schedule

    def apply_schedule(self, schedule: Schedule) -> None:
        self.classifier = WindowClassifier(schedule.timings, schedule.is_friday)
        self.schedule = schedule
        self.tracker.set_schedule(self.classifier)
        self._in_forbidden = False
        logger.info(
            "Schedule for %s%s: %s",
            schedule.date,
            " (defaults)" if schedule.fallback else "",
            schedule.timings,
        )

    def status_tick(self, now: datetime.datetime | None = None) -> TickResult:
        """Once-a-minute re-evaluation: rollover, missed detection, forbidden entry."""
        now = now or self.now()
        result = TickResult()
        if self.classifier is None:
            return result

        if now.date() != self.schedule.date:
            # Close out the day we were tracking; the caller reloads the schedule.
            result.newly_missed = self.tracker.close_day(self.schedule.date)
            self.tracker.check_daily_reset(now)
            result.rolled_over = True
            return result

        result.newly_missed = self.tracker.check_missed(now)
        forbidden = self.classifier.is_forbidden_window(hhmm(now))
        result.entered_forbidden = forbidden and not self._in_forbidden
        self._in_forbidden = forbidden
        return result

    def mark_complete(self, prayer: str, now: datetime.datetime | None = None) -> None:
        self.tracker.mark_complete(prayer, now or self.now())

    def mark_incomplete(self, prayer: str, now: datetime.datetime | None = None) -> None:
        self.tracker.mark_incomplete(prayer, now or self.now())

    def toggle(self, prayer: str, checked: bool, now: datetime.datetime | None = None) -> None:
        """Checkbox entry point."""
        self.tracker.toggle(prayer, checked, now or self.now())

    def snapshot(self, now: datetime.datetime | None = None) -> Snapshot:
        """Project the current state into plain values for rendering."""
        now = now or self.now()
        snap = Snapshot(
            missed_counts=self.tracker.missed_counts_by_prayer(),
            location=self.location_label,
        )
        if self.classifier is None:
            return snap

        current = hhmm(now)
        classifier = self.classifier
        for name in classifier.prayers:
            display = PRAYER_DISPLAY[name]
            snap.prayers.append(PrayerView(
                name=name,
                arabic=display["arabic"],
                icon=display["icon"],
                start=classifier.start_time_of(name),
                end=classifier.end_time_of(name),
                is_active=classifier.is_active(name, current),
                is_forbidden=classifier.is_forbidden(name, current),
                is_completed=self.tracker.is_completed(name, now),
            ))

        completed, total = self.tracker.today_stats(now)
        snap.completed_count = completed
        snap.remaining_count = total - completed
        snap.next_label = classifier.next_prayer(current).label()
        snap.forbidden_banner = classifier.is_forbidden_window(current)
        snap.hijri = self.schedule.hijri
        snap.fallback = self.schedule.fallback
        return snap
