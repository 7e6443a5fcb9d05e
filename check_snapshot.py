#!/usr/bin/env python3
"""Quick script to check the visitor snapshot"""

from visitor_analytics.analytics.transformer import EventTransformer
from visitor_analytics.source.api_client import VisitorApiClient

raw_events = VisitorApiClient().fetch_events()
transformer = EventTransformer()
events = transformer.transform_all(raw_events)
stats = transformer.get_stats()

print("Visitor snapshot:")
print(f"  records: {len(raw_events)}")
print(f"  usable: {stats['processed']}")
print(f"  skipped: {stats['skipped']}")
if events:
    timestamps = [e.timestamp for e in events]
    print(f"  span: {min(timestamps).isoformat()} .. {max(timestamps).isoformat()}")
