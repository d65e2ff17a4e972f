from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone


def workforce_zone() -> ZoneInfo:
    return ZoneInfo(getattr(settings, "WORKFORCE_TIME_ZONE", "Asia/Kolkata"))


def local_now(now: datetime | None = None) -> datetime:
    moment = now or timezone.now()
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment, ZoneInfo("UTC"))
    return moment.astimezone(workforce_zone())


def local_date(now: datetime | None = None) -> date:
    return local_now(now).date()


def wall_clock(now: datetime | None = None) -> str:
    # 12-hour clock without a leading zero, e.g. "9:05:03 AM"
    return local_now(now).strftime("%I:%M:%S %p").lstrip("0")


def day_bounds(day: date) -> tuple[datetime, datetime]:
    zone = workforce_zone()
    start = datetime.combine(day, datetime.min.time(), tzinfo=zone)
    end = datetime.combine(day, datetime.max.time(), tzinfo=zone)
    return start, end
