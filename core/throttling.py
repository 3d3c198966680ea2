import re

from django.core.exceptions import ImproperlyConfigured
from rest_framework.throttling import ScopedRateThrottle

PERIODS = {'s': 1, 'm': 60, 'h': 3600, 'd': 86400}


class ScopedWindowRateThrottle(ScopedRateThrottle):
    """
    ScopedRateThrottle whose rates may name multi-unit windows, e.g. ``3/5m``
    for three requests per five minutes. Plain DRF rates (``5/minute``) still work.
    """

    def parse_rate(self, rate):
        if rate is None:
            return (None, None)
        num, period = rate.split('/')
        match = re.fullmatch(r'(\d*)([smhd])[a-z]*', period.strip())
        if not match:
            raise ImproperlyConfigured(f"Invalid throttle rate: {rate!r}")
        multiplier = int(match.group(1) or 1)
        return int(num), multiplier * PERIODS[match.group(2)]
