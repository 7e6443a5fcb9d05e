"""Resolution of symbolic range selectors into concrete UTC bounds."""

import logging
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Union
from visitor_analytics.config import Config
from visitor_analytics.storage.models import ResolvedRange

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
END_OF_DAY = time(23, 59, 59, 999000)


class RangeSelector(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"
    CUSTOM = "custom"


class InvalidRangeError(ValueError):
    """Raised when a selector or its custom bounds cannot be resolved."""


def utc_now():
    return datetime.now(timezone.utc)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, END_OF_DAY, tzinfo=timezone.utc)


def parse_selector(value: Union[str, RangeSelector]) -> RangeSelector:
    try:
        return RangeSelector(value)
    except ValueError:
        choices = ", ".join(s.value for s in RangeSelector)
        raise InvalidRangeError(f"Unknown range '{value}', expected one of: {choices}") from None


def parse_day(value, name: str) -> date:
    """Parse a YYYY-MM-DD calendar date supplied for a custom range."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        raise InvalidRangeError(f"Custom range requires a {name} date")
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidRangeError(f"Invalid {name} date '{value}', expected YYYY-MM-DD") from None


class DateRangeResolver:
    """Turns a range selector into inclusive [start, end] instants, in UTC.
    
    Every bound is pinned to a whole calendar day: start at 00:00:00.000 and
    end at 23:59:59.999. The "all" selector starts at the epoch.
    """
    
    def __init__(self, clock: Optional[Callable[[], datetime]] = None, max_custom_days: Optional[int] = None):
        self.clock = clock or utc_now
        self.max_custom_days = Config.MAX_CUSTOM_RANGE_DAYS if max_custom_days is None else max_custom_days
    
    def today(self) -> date:
        now = self.clock()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.date()
    
    def resolve(self, selector, custom_start=None, custom_end=None) -> ResolvedRange:
        selector = parse_selector(selector)
        today = self.today()
        
        if selector == RangeSelector.TODAY:
            start = start_of_day(today)
        elif selector == RangeSelector.WEEK:
            start = start_of_day(today - timedelta(days=6))
        elif selector == RangeSelector.MONTH:
            start = start_of_day(today - timedelta(days=29))
        elif selector == RangeSelector.ALL:
            start = EPOCH
        else:
            first = parse_day(custom_start, "start")
            last = parse_day(custom_end, "end")
            span = (last - first).days + 1
            if span > self.max_custom_days:
                raise InvalidRangeError(f"Custom range spans {span} days, at most {self.max_custom_days} allowed")
            if first > last:
                logger.info(f"Custom range starts after it ends ({first} > {last}), nothing will match")
            return ResolvedRange(start=start_of_day(first), end=end_of_day(last))
        
        return ResolvedRange(start=start, end=end_of_day(today))
