#!/usr/bin/env python3

import argparse
import json
import logging
import sys
from prometheus_client import CollectorRegistry
from visitor_analytics.config import Config
from visitor_analytics.analytics.date_range import InvalidRangeError, RangeSelector
from visitor_analytics.analytics.pipeline import AnalyticsPipeline, RangeSelection
from visitor_analytics.source.api_client import FetchError, VisitorApiClient
from visitor_analytics.monitoring.metrics import AnalyticsMetrics
from visitor_analytics.monitoring.alerts import AlertManager

logging.basicConfig(level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
                    format='%(asctime)s - %(levelname)s - %(message)s', stream=sys.stderr)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Aggregate visitor analytics for the admin dashboard")
    parser.add_argument('--range', dest='selector', default=Config.DEFAULT_RANGE,
                        choices=[s.value for s in RangeSelector], help="Time window to aggregate")
    parser.add_argument('--start', help="First day of a custom range (YYYY-MM-DD)")
    parser.add_argument('--end', help="Last day of a custom range (YYYY-MM-DD)")
    parser.add_argument('--country', help="Only count visits whose country contains this text")
    parser.add_argument('--input', help="Read a JSON snapshot file instead of calling the API")
    parser.add_argument('--pretty', action='store_true', help="Indent the JSON output")
    return parser.parse_args(argv)


def load_snapshot(path):
    with open(path, encoding='utf-8') as f:
        body = json.load(f)
    # Accept either a bare list or a saved API response
    if isinstance(body, dict):
        body = body.get('data', [])
    if not isinstance(body, list):
        raise ValueError(f"{path} does not contain a list of visitor records")
    return body


def main(argv=None):
    args = parse_args(argv)
    
    registry = CollectorRegistry()
    metrics = AnalyticsMetrics(metrics_port=Config.METRICS_PORT if Config.METRICS_ENABLED else None,
                               registry=registry)
    alert_manager = AlertManager(registry=registry)
    
    if args.input:
        raw_events = load_snapshot(args.input)
        logger.info(f"Loaded {len(raw_events)} records from {args.input}")
    else:
        client = VisitorApiClient(metrics=metrics)
        try:
            raw_events = client.fetch_events()
        except FetchError as e:
            alert_manager.check_fetch_failure(e)
            hint = " (retry later)" if e.retryable else ""
            print(f"Failed to load analytics data: {e}{hint}", file=sys.stderr)
            return 1
    
    selection = RangeSelection(selector=args.selector, start=args.start, end=args.end, country=args.country)
    pipeline = AnalyticsPipeline(metrics=metrics, alert_manager=alert_manager)
    
    try:
        result = pipeline.run(raw_events, selection)
    except InvalidRangeError as e:
        print(f"Invalid range: {e}", file=sys.stderr)
        return 2
    
    if result.summary.total == 0:
        logger.info("No data for selected period")
    
    output = result.model_dump(mode='json', by_alias=True)
    print(json.dumps(output, indent=2 if args.pretty else None))
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
