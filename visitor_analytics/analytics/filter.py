def filter_events(events, resolved_range, country=None):
    """Events with start <= timestamp <= end, in their original order.
    
    When country is given only events whose country contains it
    (case-insensitive) are kept.
    """
    needle = country.strip().lower() if country else None
    selected = []
    for event in events:
        if not resolved_range.contains(event.timestamp):
            continue
        if needle and needle not in (event.country or '').lower():
            continue
        selected.append(event)
    return selected
