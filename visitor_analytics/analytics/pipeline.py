"""End-to-end visitor analytics: resolve, filter, bucket, summarise, project.

`aggregate` is a pure function of (events, selection, now). Calling it twice
with the same inputs gives equal results. `AnalyticsPipeline` adds the
validation, metrics and alerting used by the command line entry point.
"""

import logging
import time
from datetime import date
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict
from visitor_analytics.analytics.aggregator import DailyBucketAggregator, SummaryAggregator
from visitor_analytics.analytics.date_range import DateRangeResolver, InvalidRangeError, parse_selector, utc_now
from visitor_analytics.analytics.filter import filter_events
from visitor_analytics.analytics.labels import format_label
from visitor_analytics.analytics.recent import project_recent
from visitor_analytics.analytics.transformer import EventTransformer
from visitor_analytics.storage.models import AnalyticsResult

logger = logging.getLogger(__name__)


class RangeSelection(BaseModel):
    """What the caller picked: a selector and, for custom, two calendar dates."""
    
    model_config = ConfigDict(frozen=True)
    
    selector: str = 'week'
    start: Optional[Union[date, str]] = None
    end: Optional[Union[date, str]] = None
    country: Optional[str] = None


def _run(events, selection, now):
    selector = parse_selector(selection.selector)
    resolver = DateRangeResolver(clock=lambda: now)
    resolved = resolver.resolve(selector, selection.start, selection.end)
    today = resolver.today()
    
    filtered = filter_events(events, resolved, country=selection.country)
    
    buckets = DailyBucketAggregator(resolved, selector)
    buckets.add_events(filtered)
    per_day = buckets.get_buckets(label_for=lambda day: format_label(day, selector, today))
    
    summary = SummaryAggregator()
    summary.add_events(filtered)
    
    return AnalyticsResult(
        selector=selector.value,
        range=resolved,
        summary=summary.to_summary(per_day),
        recent_visits=project_recent(filtered),
    )


def aggregate(events, selection, now=None):
    """Returns (Summary, recent visits) for already validated events.
    
    Raises InvalidRangeError for an unknown selector or bad custom bounds.
    """
    result = _run(events, selection, now or utc_now())
    return result.summary, result.recent_visits


class AnalyticsPipeline:
    """Validates a raw snapshot and aggregates it, with metrics and alerts."""
    
    def __init__(self, metrics=None, alert_manager=None, clock=None):
        self.metrics = metrics
        self.alert_manager = alert_manager
        self.clock = clock or utc_now
    
    def run(self, raw_events, selection):
        start_time = time.time()
        transformer = EventTransformer()
        events = transformer.transform_all(raw_events)
        stats = transformer.get_stats()
        
        try:
            result = _run(events, selection, self.clock())
        except InvalidRangeError as e:
            logger.error(f"Invalid range: {e}")
            if self.alert_manager:
                self.alert_manager.check_invalid_range(e)
            raise
        
        duration = time.time() - start_time
        total = result.summary.total
        logger.info(f"Aggregated {total} of {len(events)} events for '{result.selector}' "
                    f"({stats['skipped']} skipped) in {duration:.3f}s")
        
        if self.metrics:
            self.metrics.record_run(result.selector, duration)
            self.metrics.record_events(stats['processed'], stats['skipped'], total)
        if self.alert_manager:
            self.alert_manager.check_skip_rate(stats['skipped'], stats['processed'] + stats['skipped'])
            self.alert_manager.check_empty_period(result.selector, total)
        
        return result
