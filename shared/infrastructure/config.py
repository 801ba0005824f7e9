"""Access to the ``ALLOCATION`` settings dict with built-in defaults."""

from django.conf import settings

DEFAULTS = {
    'AUTO_CONFIRM_RESERVATIONS': False,
    'DAILY_RESERVATION_LIMIT': 3,
    'NO_SHOW_GRACE_MINUTES': 15,
    'UPCOMING_WINDOW_DAYS': 7,
    'SWEEP_INTERVAL_SECONDS': 300,
}


def allocation_setting(name: str):
    """Value of ``settings.ALLOCATION[name]``, falling back to the default."""
    return getattr(settings, 'ALLOCATION', {}).get(name, DEFAULTS[name])
