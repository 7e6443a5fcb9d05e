import logging
from datetime import timedelta
from visitor_analytics.analytics.date_range import RangeSelector
from visitor_analytics.config import Config
from visitor_analytics.storage.models import (
    BrowserCount, CountryCount, DailyBucket, PageCount, Summary
)

logger = logging.getLogger(__name__)


def iter_days(start, end):
    """Every calendar day from start to end inclusive; nothing when start > end."""
    first = start.date()
    for offset in range((end.date() - first).days + 1):
        yield first + timedelta(days=offset)


def top_entries(counts, limit=None):
    """Sort a frequency table by count descending; ties keep first-seen order."""
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked if limit is None else ranked[:limit]


class DailyAggregation:
    """Tracks events for a single calendar day."""
    
    def __init__(self, day):
        self.day = day
        self.count = 0
        self.views = 0
        self.unique_ips = set()
    
    def add_event(self, event):
        self.count += 1
        self.views += 1
        if event.ip_address is not None:
            self.unique_ips.add(event.ip_address)
    
    def to_bucket(self, label=''):
        return DailyBucket(date=self.day, count=self.count, views=self.views,
                           unique_visitors=len(self.unique_ips), label=label)


class DailyBucketAggregator:
    """Groups events into calendar-day buckets, zero-filled across the range."""
    
    def __init__(self, resolved_range, selector):
        self.resolved_range = resolved_range
        self.selector = RangeSelector(selector)
        self.aggregations = {}
        
        if self.selector != RangeSelector.ALL:
            for day in iter_days(resolved_range.start, resolved_range.end):
                self.aggregations[day] = DailyAggregation(day)
    
    def add_event(self, event):
        day = event.timestamp.date()
        if day not in self.aggregations:
            self.aggregations[day] = DailyAggregation(day)
        self.aggregations[day].add_event(event)
    
    def add_events(self, events):
        for event in events:
            self.add_event(event)
    
    def get_buckets(self, label_for=None):
        buckets = []
        for day in sorted(self.aggregations):
            label = label_for(day) if label_for else ''
            buckets.append(self.aggregations[day].to_bucket(label))
        return buckets


def browser_name(user_agent):
    """Classify a user agent; "Unknown" when absent, "Other" when unrecognised."""
    if not user_agent:
        return 'Unknown'
    for token in ('Chrome', 'Firefox', 'Safari', 'Edge'):
        if token in user_agent:
            return token
    return 'Other'


class SummaryAggregator:
    """Totals, unique visitors and top-N dimensions over a filtered event set."""
    
    def __init__(self, top_countries_limit=None, top_pages_limit=None):
        self.top_countries_limit = Config.TOP_COUNTRIES_LIMIT if top_countries_limit is None else top_countries_limit
        self.top_pages_limit = Config.TOP_PAGES_LIMIT if top_pages_limit is None else top_pages_limit
        self.total = 0
        self.unique_ips = set()
        self.countries = {}
        self.pages = {}
        self.browsers = {}
    
    def add_event(self, event):
        self.total += 1
        
        if event.ip_address is not None:
            self.unique_ips.add(event.ip_address)
        if event.country:
            self.countries[event.country] = self.countries.get(event.country, 0) + 1
        if event.page_url:
            self.pages[event.page_url] = self.pages.get(event.page_url, 0) + 1
        if event.user_agent:
            browser = browser_name(event.user_agent)
            self.browsers[browser] = self.browsers.get(browser, 0) + 1
    
    def add_events(self, events):
        for event in events:
            self.add_event(event)
    
    def to_summary(self, per_day=None):
        per_day = per_day or []
        daily_counts = [bucket.count for bucket in per_day]
        daily_average = round(sum(daily_counts) / len(daily_counts)) if daily_counts else 0
        
        summary = Summary(
            total=self.total,
            unique_visitors=len(self.unique_ips),
            top_countries=[CountryCount(country=c, count=n)
                           for c, n in top_entries(self.countries, self.top_countries_limit)],
            top_pages=[PageCount(page=p, count=n)
                       for p, n in top_entries(self.pages, self.top_pages_limit)],
            per_day=per_day,
            browsers=[BrowserCount(browser=b, count=n) for b, n in top_entries(self.browsers)],
            daily_average=daily_average,
            peak_day=max(daily_counts, default=0),
        )
        logger.debug(f"Summary: {summary.total} events, {summary.unique_visitors} unique, "
                     f"{len(per_day)} days")
        return summary
