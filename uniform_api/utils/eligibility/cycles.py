# uniform_api/utils/eligibility/cycles.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone

from dateutil.relativedelta import relativedelta

DEFAULT_DATE_OF_JOINING = datetime(2025, 10, 1, tzinfo=timezone.utc)

RENEWAL_UNIT_MONTHS = "months"
RENEWAL_UNIT_YEARS = "years"
RENEWAL_UNITS = (RENEWAL_UNIT_MONTHS, RENEWAL_UNIT_YEARS)

_ONE_DAY_SECONDS = 86400


def to_utc(value) -> datetime | None:
    """
    Coerce a date/datetime/ISO string to an aware UTC datetime.
    Naive values (what pymongo returns) are taken to already be UTC.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    raise TypeError(f"Unsupported date value: {value!r}")


def cycle_length_months(renewal_frequency: int, renewal_unit: str = RENEWAL_UNIT_MONTHS) -> int:
    frequency = int(renewal_frequency)
    unit = (renewal_unit or RENEWAL_UNIT_MONTHS).strip().lower()
    if unit == RENEWAL_UNIT_YEARS:
        return frequency * 12
    if unit == RENEWAL_UNIT_MONTHS:
        return frequency
    raise ValueError(f"Unsupported renewal unit: {renewal_unit!r}")


@dataclass(frozen=True)
class CycleWindow:
    index: int
    start: datetime
    end: datetime
    days_remaining: int

    @property
    def next_start(self) -> datetime:
        return self.end

    @property
    def expired(self) -> bool:
        return self.days_remaining <= 0

    def contains(self, moment) -> bool:
        moment = to_utc(moment)
        return moment is not None and self.start <= moment < self.end

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "next_start": self.next_start.isoformat(),
            "days_remaining": self.days_remaining,
        }


def _cycle_start(anchor: datetime, length: int, index: int) -> datetime:
    # always offset from the anchor so month-end joins do not drift
    return anchor + relativedelta(months=length * index)


def current_cycle(date_of_joining, cycle_length: int, as_of=None) -> CycleWindow:
    """
    Renewal cycle containing `as_of`.

    Cycles are anchored at the join date and repeat every `cycle_length`
    months: cycle k spans [join + k*len, join + (k+1)*len). Before the join
    date the employee is in cycle 0. Pure function, never resets anything.
    """
    length = int(cycle_length)
    if length <= 0:
        raise ValueError("cycle length must be a positive number of months")

    anchor = to_utc(date_of_joining) or DEFAULT_DATE_OF_JOINING
    moment = to_utc(as_of) or datetime.now(timezone.utc)

    index = 0
    if moment >= anchor:
        elapsed_months = (moment.year - anchor.year) * 12 + (moment.month - anchor.month)
        index = max(elapsed_months // length, 0)
        while _cycle_start(anchor, length, index + 1) <= moment:
            index += 1
        while index > 0 and _cycle_start(anchor, length, index) > moment:
            index -= 1

    start = _cycle_start(anchor, length, index)
    end = _cycle_start(anchor, length, index + 1)
    remaining = math.ceil((end - moment).total_seconds() / _ONE_DAY_SECONDS)

    return CycleWindow(index=index, start=start, end=end, days_remaining=max(remaining, 0))
