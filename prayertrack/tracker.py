"""Per-day record of completed and missed prayers."""

import datetime
import logging

from prayertrack.timemath import hhmm, to_minutes

logger = logging.getLogger(__name__)

COMPLETED_KEY = "completedPrayers"
MISSED_KEY = "missedPrayers"
LAST_RESET_KEY = "lastReset"

RETENTION_DAYS = 30
DAILY_TOTAL = 5

PENDING = "pending"
COMPLETED = "completed"
MISSED = "missed"


def day_key(day: datetime.date) -> str:
    """DayKey in the 'D-M-YYYY' form the records are bucketed by."""
    return f"{day.day}-{day.month}-{day.year}"


def parse_day_key(key: str) -> datetime.date:
    """Inverse of day_key(). Raises ValueError for anything else."""
    parts = key.split("-") if isinstance(key, str) else []
    if len(parts) != 3:
        raise ValueError(f"Malformed day key: {key!r}")
    day, month, year = (int(p) for p in parts)
    return datetime.date(year, month, day)


class CompletionTracker:
    """
    Tracks each (day, prayer) pair through pending -> completed / missed.

    Both records are pushed whole to `store` after every change and pulled
    from it once, here. End-of-window lookups go through the classifier
    given to set_schedule(); until one is set nothing is ever auto-missed.
    """

    def __init__(self, store, classifier=None):
        self.store = store
        self.classifier = classifier
        self.completed = {
            key: set(names) for key, names in (store.load(COMPLETED_KEY) or {}).items()
        }
        self.missed = {
            key: dict(entries) for key, entries in (store.load(MISSED_KEY) or {}).items()
        }

    def set_schedule(self, classifier) -> None:
        self.classifier = classifier

    def _persist(self) -> None:
        self.store.save(COMPLETED_KEY, self.completed)
        self.store.save(MISSED_KEY, self.missed)

    def _window_closed(self, prayer: str, now: datetime.datetime) -> bool:
        if self.classifier is None:
            return False
        return to_minutes(hhmm(now)) > to_minutes(self.classifier.end_time_of(prayer))

    def _record_missed(self, key: str, prayer: str) -> bool:
        bucket = self.missed.setdefault(key, {})
        if prayer in bucket:
            return False
        bucket[prayer] = {"date": key, "time": self.classifier.start_time_of(prayer)}
        logger.info("Recorded %s as missed on %s", prayer, key)
        return True

    def _clear_missed(self, key: str, prayer: str) -> None:
        bucket = self.missed.get(key)
        if bucket and prayer in bucket:
            del bucket[prayer]
            if not bucket:
                del self.missed[key]

    def is_completed(self, prayer: str, now: datetime.datetime) -> bool:
        return prayer in self.completed.get(day_key(now.date()), ())

    def state_of(self, prayer: str, now: datetime.datetime) -> str:
        key = day_key(now.date())
        if prayer in self.completed.get(key, ()):
            return COMPLETED
        if prayer in self.missed.get(key, {}):
            return MISSED
        return PENDING

    def mark_complete(self, prayer: str, now: datetime.datetime) -> None:
        """Mark a prayer prayed today; clears a missed entry for it if any."""
        key = day_key(now.date())
        self.completed.setdefault(key, set()).add(prayer)
        self._clear_missed(key, prayer)
        self._persist()

    def mark_incomplete(self, prayer: str, now: datetime.datetime) -> None:
        """
        Undo a completion mark.

        If the prayer's window has already closed the pair goes straight to
        missed rather than back to pending.
        """
        key = day_key(now.date())
        names = self.completed.get(key)
        if names is not None:
            names.discard(prayer)
            if not names:
                del self.completed[key]
        if self._window_closed(prayer, now):
            self._record_missed(key, prayer)
        self._persist()

    def toggle(self, prayer: str, checked: bool, now: datetime.datetime) -> None:
        if checked:
            self.mark_complete(prayer, now)
        else:
            self.mark_incomplete(prayer, now)

    def check_missed(self, now: datetime.datetime) -> list:
        """Record every closed, unmarked prayer as missed. Returns the new ones."""
        if self.classifier is None:
            return []
        key = day_key(now.date())
        done = self.completed.get(key, set())
        newly_missed = []
        for prayer in self.classifier.prayers:
            if prayer in done or not self._window_closed(prayer, now):
                continue
            if self._record_missed(key, prayer):
                newly_missed.append(prayer)
        if newly_missed:
            self._persist()
        return newly_missed

    def close_day(self, day: datetime.date) -> list:
        """
        Record every unmarked prayer of a finished day as missed.

        Used on day rollover, so Isha (whose window runs to 23:59) is not
        silently dropped. The current classifier must still hold that day's
        schedule.
        """
        if self.classifier is None:
            return []
        key = day_key(day)
        done = self.completed.get(key, set())
        newly_missed = [
            prayer for prayer in self.classifier.prayers
            if prayer not in done and self._record_missed(key, prayer)
        ]
        if newly_missed:
            self._persist()
        return newly_missed

    def missed_counts_by_prayer(self) -> dict:
        counts: dict = {}
        for entries in self.missed.values():
            for prayer in entries:
                counts[prayer] = counts.get(prayer, 0) + 1
        return counts

    def today_stats(self, now: datetime.datetime) -> tuple:
        """(completed today, daily total). The total is 5 even on Fridays."""
        done = self.completed.get(day_key(now.date()), set())
        if self.classifier is not None:
            done = done & set(self.classifier.prayers)
        return len(done), DAILY_TOTAL

    def purge_older_than(self, now: datetime.datetime, days: int = RETENTION_DAYS) -> list:
        """Drop day buckets older than `days` from both records. Returns removed keys."""
        cutoff = now.replace(tzinfo=None) - datetime.timedelta(days=days)
        removed = []
        for record in (self.completed, self.missed):
            for key in list(record):
                try:
                    day = parse_day_key(key)
                except ValueError:
                    logger.warning("Skipping unparsable day key %r", key)
                    continue
                if datetime.datetime.combine(day, datetime.time.min) < cutoff:
                    del record[key]
                    removed.append(key)
        self._persist()
        return removed

    def check_daily_reset(self, now: datetime.datetime) -> bool:
        """Run the retention sweep once per calendar day. True if it ran."""
        today = now.date().isoformat()
        if self.store.load(LAST_RESET_KEY) == today:
            return False
        self.store.save(LAST_RESET_KEY, today)
        removed = self.purge_older_than(now)
        if removed:
            logger.info("Purged %d day bucket(s) older than %d days", len(removed), RETENTION_DAYS)
        return True
