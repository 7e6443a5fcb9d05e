import json
import logging
from visitor_analytics.analytics.aggregator import browser_name
from visitor_analytics.config import Config
from visitor_analytics.storage.models import RecentVisit

logger = logging.getLogger(__name__)


def _place(city, country):
    if city and country:
        return f"{city}, {country}"
    return country or None


def resolve_location(event):
    """Display string for where a visit came from; never raises."""
    raw = event.location
    if raw and raw.strip() != 'null':
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.debug(f"Unparseable location on visit {event.id}: {raw!r}")
            parsed = None
        if isinstance(parsed, dict):
            place = _place(parsed.get('city'), parsed.get('country'))
            if place:
                return str(place)
    
    return _place(event.city, event.country) or 'Unknown'


def project_visit(event):
    return RecentVisit(
        id=event.id,
        ip=event.ip_address or 'Unknown',
        location=resolve_location(event),
        timestamp=event.timestamp,
        page=event.page_url or '/',
        browser=browser_name(event.user_agent),
    )


def project_recent(events, limit=None):
    """The newest `limit` events as display records, newest first."""
    limit = Config.RECENT_VISITS_LIMIT if limit is None else limit
    newest = sorted(events, key=lambda e: e.timestamp, reverse=True)[:limit]
    return [project_visit(event) for event in newest]
