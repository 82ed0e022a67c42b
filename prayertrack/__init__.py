"""Prayer-time tracking: schedule, window classification and completion records."""
