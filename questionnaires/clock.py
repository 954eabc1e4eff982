"""
Civil-time clock.

Class schedules are stored as plain dates and wall-clock times in a single
configured zone. Every temporal comparison in the questionnaire flow works on
naive "civil" datetimes in that zone, truncated to the minute, so a class that
ends at 17:00 is closed for assessment at 16:59 and open at 17:00 regardless
of the server's own time zone.
"""
from datetime import datetime, date, time
from zoneinfo import ZoneInfo

from django.conf import settings

END_OF_DAY = time(23, 59)
CIVIL_FORMAT = '%Y-%m-%d %H:%M'


def get_zone_name() -> str:
    return settings.QUESTIONNAIRES.get('CIVIL_TIME_ZONE', 'America/Sao_Paulo')


class CivilClock:
    def __init__(self, zone_name: str = None):
        self.zone = ZoneInfo(zone_name or get_zone_name())

    def now(self) -> datetime:
        """Current wall-clock time in the configured zone, minute precision, naive."""
        local = datetime.now(self.zone)
        return local.replace(second=0, microsecond=0, tzinfo=None)


def civil_timestamp(day: date, at: time = None) -> datetime:
    """Combine a schedule date and time; a missing time means end of day."""
    at = at or END_OF_DAY
    return datetime.combine(day, at).replace(second=0, microsecond=0)


def format_civil(value: datetime) -> str:
    if value is None:
        return None
    return value.strftime(CIVIL_FORMAT)
