import logging
from prometheus_client import REGISTRY, Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)


class AnalyticsMetrics:
    """Prometheus metrics for visitor analytics runs."""
    
    def __init__(self, metrics_port=None, registry=None):
        registry = registry or REGISTRY
        
        self.aggregation_runs = Counter('analytics_runs_total', 'Aggregation runs', ['selector'],
                                        registry=registry)
        self.aggregation_latency = Histogram(
            'analytics_aggregation_duration_seconds', 'Aggregation time',
            buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=registry
        )
        
        self.events_in = Counter('analytics_events_in_total', 'Raw visitor records received',
                                 registry=registry)
        self.events_skipped = Counter('analytics_events_skipped_total', 'Visitor records skipped',
                                      ['reason'], registry=registry)
        self.events_in_range = Gauge('analytics_events_in_range', 'Events inside the last resolved range',
                                     registry=registry)
        self.last_run_unixtime = Gauge('analytics_last_run_unixtime',
                                       'Unix timestamp of the last successful aggregation',
                                       registry=registry)
        
        self.fetch_errors = Counter('analytics_fetch_errors_total', 'Visitor API fetch errors',
                                    ['error_type'], registry=registry)
        self.fetch_latency = Histogram(
            'analytics_fetch_duration_seconds', 'Visitor API fetch time',
            buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
            registry=registry
        )
        
        if metrics_port is not None:
            try:
                start_http_server(metrics_port, addr="0.0.0.0", registry=registry)
                logger.info(f"Metrics server on port {metrics_port}")
            except Exception as e:
                logger.warning(f"Metrics server failed: {e}")
    
    def record_run(self, selector, duration):
        self.aggregation_runs.labels(selector=selector).inc()
        self.aggregation_latency.observe(duration)
        self.last_run_unixtime.set_to_current_time()
    
    def record_events(self, processed, skipped, in_range):
        self.events_in.inc(processed + skipped)
        if skipped:
            self.events_skipped.labels(reason='invalid_record').inc(skipped)
        self.events_in_range.set(in_range)
    
    def record_fetch(self, duration):
        self.fetch_latency.observe(duration)
    
    def record_fetch_error(self, error_type):
        self.fetch_errors.labels(error_type=error_type).inc()
