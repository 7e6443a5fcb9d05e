"""End-to-end tests for the aggregation pipeline."""

import pytest
from prometheus_client import CollectorRegistry
from visitor_analytics.analytics.date_range import InvalidRangeError
from visitor_analytics.analytics.pipeline import AnalyticsPipeline, RangeSelection, aggregate
from visitor_analytics.monitoring.alerts import AlertManager
from visitor_analytics.monitoring.metrics import AnalyticsMetrics


@pytest.fixture
def events(make_event):
    return [
        make_event("2024-01-01T08:00:00Z", ip_address="1.1.1.1", country="Rwanda",
                   page_url="/", user_agent="Chrome"),
        make_event("2024-01-02T09:00:00Z", ip_address="1.1.1.1", country="Rwanda",
                   page_url="/tours", location='{"city":"Kigali","country":"Rwanda"}'),
        make_event("2024-01-02T17:30:00Z", country="Kenya", page_url="/tours"),
        make_event("2023-11-20T12:00:00Z", ip_address="9.9.9.9", country="Uganda"),
    ]


@pytest.fixture
def registry():
    return CollectorRegistry()


def test_week_scenario(events, now):
    summary, recent = aggregate(events, RangeSelection(selector="week"), now=now)
    
    assert summary.total == 3
    assert summary.unique_visitors == 1
    assert len(summary.per_day) == 7
    assert [b.count for b in summary.per_day] == [1, 2, 0, 0, 0, 0, 0]
    assert summary.per_day[-1].label == "Today"
    assert summary.per_day[0].label == "Mon"
    assert [(c.country, c.count) for c in summary.top_countries] == [("Rwanda", 2), ("Kenya", 1)]
    assert [(p.page, p.count) for p in summary.top_pages] == [("/tours", 2), ("/", 1)]
    assert summary.peak_day == 2
    assert [v.id for v in recent] == [events[2].id, events[1].id, events[0].id]
    assert recent[1].location == "Kigali, Rwanda"


def test_bucket_counts_add_up_to_total(events, now):
    for selector in ("today", "week", "month", "all"):
        summary, _ = aggregate(events, RangeSelection(selector=selector), now=now)
        
        assert sum(b.count for b in summary.per_day) == summary.total
        assert summary.unique_visitors <= summary.total


def test_all_range_includes_everything(events, now):
    summary, _ = aggregate(events, RangeSelection(selector="all"), now=now)
    
    assert summary.total == 4
    assert len(summary.per_day) == 3
    assert summary.per_day[0].label == "Nov 23"


def test_inverted_custom_range_is_empty(events, now):
    selection = RangeSelection(selector="custom", start="2024-01-05", end="2024-01-01")
    
    summary, recent = aggregate(events, selection, now=now)
    
    assert summary.per_day == []
    assert summary.total == 0
    assert recent == []


def test_custom_range(events, now):
    selection = RangeSelection(selector="custom", start="2024-01-02", end="2024-01-03")
    
    summary, _ = aggregate(events, selection, now=now)
    
    assert summary.total == 2
    assert [b.label for b in summary.per_day] == ["Jan 2", "Jan 3"]


def test_country_selection(events, now):
    summary, _ = aggregate(events, RangeSelection(selector="all", country="kenya"), now=now)
    
    assert summary.total == 1


def test_missing_custom_bound_raises(events, now):
    with pytest.raises(InvalidRangeError):
        aggregate(events, RangeSelection(selector="custom", start="2024-01-01"), now=now)


def test_aggregation_is_idempotent(events, now):
    selection = RangeSelection(selector="month")
    
    first = aggregate(events, selection, now=now)
    second = aggregate(events, selection, now=now)
    
    assert first == second
    assert first[0].model_dump_json() == second[0].model_dump_json()


def test_inputs_are_not_mutated(events, now):
    before = [e.model_dump() for e in events]
    
    aggregate(events, RangeSelection(selector="week"), now=now)
    
    assert [e.model_dump() for e in events] == before


def test_pipeline_skips_bad_records_and_records_metrics(now, registry):
    raw_events = [
        {"id": 1, "created_at": "2024-01-06T10:00:00Z", "ip_address": "1.2.3.4"},
        {"id": 2, "created_at": "2024-01-07T10:00:00Z", "ip_address": None},
        {"id": 3, "created_at": "garbage"},
    ]
    metrics = AnalyticsMetrics(registry=registry)
    alerts = AlertManager(registry=registry, skip_rate_threshold=0.5)
    pipeline = AnalyticsPipeline(metrics=metrics, alert_manager=alerts, clock=lambda: now)
    
    result = pipeline.run(raw_events, RangeSelection(selector="week"))
    
    assert result.selector == "week"
    assert result.summary.total == 2
    assert result.summary.unique_visitors == 1
    assert registry.get_sample_value('analytics_runs_total', {'selector': 'week'}) == 1.0
    assert registry.get_sample_value('analytics_events_in_total') == 3.0
    assert registry.get_sample_value('analytics_events_skipped_total', {'reason': 'invalid_record'}) == 1.0
    assert registry.get_sample_value('analytics_events_in_range') == 2.0
    # One in three skipped stays under a 50% threshold
    assert not alerts.alert_state.get('high_skip_rate_warning')


def test_pipeline_alerts_on_empty_period(now, registry):
    fired = []
    alerts = AlertManager(registry=registry)
    alerts.register_callback(lambda alert_type, severity, context: fired.append(alert_type))
    pipeline = AnalyticsPipeline(alert_manager=alerts, clock=lambda: now)
    
    result = pipeline.run([], RangeSelection(selector="today"))
    
    assert result.summary.total == 0
    assert len(result.summary.per_day) == 1
    assert fired == ['no_data']


def test_pipeline_reports_invalid_range(now, registry):
    alerts = AlertManager(registry=registry)
    pipeline = AnalyticsPipeline(alert_manager=alerts, clock=lambda: now)
    
    with pytest.raises(InvalidRangeError):
        pipeline.run([], RangeSelection(selector="fortnight"))
    
    assert registry.get_sample_value(
        'analytics_alerts_fired_total', {'alert_type': 'invalid_range', 'severity': 'warning'}
    ) == 1.0


def test_result_serialises_with_camel_case_keys(events, now):
    result = AnalyticsPipeline(clock=lambda: now).run(events, RangeSelection(selector="week"))
    
    output = result.model_dump(mode='json', by_alias=True)
    
    assert set(output) == {'selector', 'range', 'summary', 'recentVisits'}
    assert {'total', 'uniqueVisitors', 'topCountries', 'topPages', 'perDay',
            'browsers', 'dailyAverage', 'peakDay'} == set(output['summary'])
    assert output['summary']['perDay'][0]['date'] == "2024-01-01"
    assert set(output['summary']['perDay'][0]) == {'date', 'count', 'views', 'uniqueVisitors', 'label'}


def test_out_of_range_timestamp_does_not_stop_the_run(now):
    raw_events = [
        {"id": 1, "created_at": "2024-01-06T10:00:00Z"},
        {"id": 2, "created_at": "0001-01-01T00:00:00+05:00"},
    ]
    
    result = AnalyticsPipeline(clock=lambda: now).run(raw_events, RangeSelection(selector="week"))
    
    assert result.summary.total == 1


def test_custom_range_at_end_of_calendar(now):
    selection = RangeSelection(selector="custom", start="9999-12-30", end="9999-12-31")
    
    summary, _ = aggregate([], selection, now=now)
    
    assert len(summary.per_day) == 2
    assert summary.total == 0


def test_no_data_alert_clears_once_visits_return(make_event, now, registry):
    alerts = AlertManager(registry=registry)
    pipeline = AnalyticsPipeline(alert_manager=alerts, clock=lambda: now)
    
    pipeline.run([], RangeSelection(selector="today"))
    assert alerts.alert_state['no_data_info'] is True
    
    pipeline.run([make_event("2024-01-07T09:00:00Z")], RangeSelection(selector="today"))
    assert alerts.alert_state['no_data_info'] is False
