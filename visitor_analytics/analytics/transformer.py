import logging
from pydantic import ValidationError
from visitor_analytics.storage.models import VisitorEvent

logger = logging.getLogger(__name__)


class EventTransformer:
    """Validates raw visitor records into VisitorEvent models."""
    
    def __init__(self):
        self.processed_count = 0
        self.skipped_count = 0
    
    def transform(self, raw_event):
        """Returns a VisitorEvent, or None when the record cannot be used."""
        if isinstance(raw_event, VisitorEvent):
            self.processed_count += 1
            return raw_event
        
        try:
            event = VisitorEvent.model_validate(raw_event)
        except ValidationError as e:
            self.skipped_count += 1
            record_id = raw_event.get('id') if isinstance(raw_event, dict) else None
            logger.warning(f"Skipping visitor record {record_id}: {e.error_count()} invalid field(s)")
            logger.debug(f"Validation detail: {e}")
            return None
        
        self.processed_count += 1
        return event
    
    def transform_all(self, raw_events):
        events = []
        for raw_event in raw_events:
            event = self.transform(raw_event)
            if event is not None:
                events.append(event)
        return events
    
    def get_stats(self):
        total = self.processed_count + self.skipped_count
        return {
            'processed': self.processed_count,
            'skipped': self.skipped_count,
            'success_rate': (self.processed_count / total * 100) if total > 0 else 0
        }
