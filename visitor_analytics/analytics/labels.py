from datetime import date, datetime
from visitor_analytics.analytics.date_range import RangeSelector

MONTHS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
          'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')
WEEKDAYS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')
INVALID_DATE = 'Invalid Date'


def _as_day(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def month_day(day):
    return f"{MONTHS[day.month - 1]} {day.day}"


def month_year(day):
    return f"{MONTHS[day.month - 1]} {day.year % 100:02d}"


def format_label(value, selector, today):
    """Axis label for a bucket day, coarser or finer depending on the range."""
    day = _as_day(value)
    if day is None:
        return INVALID_DATE
    
    selector = RangeSelector(selector)
    offset = (today - day).days
    
    if selector == RangeSelector.TODAY:
        return 'Today' if offset == 0 else month_day(day)
    if selector == RangeSelector.WEEK:
        if offset == 0:
            return 'Today'
        if offset == 1:
            return 'Yesterday'
        if 2 <= offset <= 6:
            return WEEKDAYS[day.weekday()]
        return month_day(day)
    if selector == RangeSelector.ALL:
        return month_day(day) if day.year == today.year else month_year(day)
    return month_day(day)
