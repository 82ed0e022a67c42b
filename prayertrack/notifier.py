"""Desktop notifications for missed prayers and forbidden windows."""

import logging

try:
    from plyer import notification as plyer_notification
    _PLYER_AVAILABLE = True
except ImportError:
    _PLYER_AVAILABLE = False

logger = logging.getLogger(__name__)

APP_NAME = "Prayer Tracker"
APP_ICON = ""  # Path to icon file; empty = default


def _send_plyer(title: str, message: str, timeout: int = 10) -> None:
    """Send a desktop notification via plyer (cross-platform)."""
    if not _PLYER_AVAILABLE:
        return
    kwargs = dict(
        app_name=APP_NAME,
        title=title,
        message=message,
        timeout=timeout,
    )
    if APP_ICON:
        kwargs["app_icon"] = APP_ICON
    try:
        plyer_notification.notify(**kwargs)
    except Exception as exc:
        # plyer raises backend-specific errors (dbus, win32, NotImplementedError)
        logger.warning("Desktop notification failed: %s", exc)


def notify_missed(prayers: list, callback=None) -> None:
    """
    Tell the user one or more prayers just slipped past their window.
    Optionally calls callback(title, message) for an in-app banner.
    """
    if not prayers:
        return
    names = ", ".join(prayers)
    title = f"🕌 Missed: {names}"
    message = f"The time for {names} has ended. It has been added to your missed prayers."
    _send_plyer(title, message, timeout=15)
    if callback:
        callback(title, message)


def notify_forbidden(callback=None) -> None:
    """Announce the start of a disliked (forbidden) prayer window."""
    title = "⚠ Forbidden prayer time"
    message = "Prayer is disliked at this time. Wait until the window has passed."
    _send_plyer(title, message, timeout=15)
    if callback:
        callback(title, message)
