"""Shared fixtures for the visitor analytics tests."""

from datetime import datetime, timezone
import pytest
from visitor_analytics.storage.models import VisitorEvent


@pytest.fixture
def now():
    """A fixed reference instant: Sunday 2024-01-07, midday UTC."""
    return datetime(2024, 1, 7, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_event():
    """Factory for VisitorEvent records with sensible defaults."""
    counter = {'id': 0}
    
    def _make(timestamp, **fields):
        counter['id'] += 1
        fields.setdefault('id', counter['id'])
        return VisitorEvent(timestamp=timestamp, **fields)
    
    return _make
