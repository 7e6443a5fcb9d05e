import logging
from datetime import datetime, timezone
from prometheus_client import REGISTRY, Counter
from visitor_analytics.config import Config

logger = logging.getLogger(__name__)


class AlertManager:
    """Threshold-based alerting with Prometheus metrics."""
    
    def __init__(self, registry=None, skip_rate_threshold=None):
        self.alert_callbacks = []
        self.alerts_fired = Counter('analytics_alerts_fired_total', 'Alerts fired', ['alert_type', 'severity'],
                                    registry=registry or REGISTRY)
        
        self.thresholds = {
            'skip_rate': Config.ALERT_SKIP_RATE_THRESHOLD if skip_rate_threshold is None else skip_rate_threshold,
        }
        
        self.alert_state = {}
    
    def register_callback(self, callback):
        self.alert_callbacks.append(callback)
    
    def _fire_alert(self, alert_type, severity, message, context=None):
        context = context or {}
        context['timestamp'] = datetime.now(timezone.utc).isoformat()
        context['alert_message'] = message
        
        alert_key = f"{alert_type}_{severity}"
        self.alert_state[alert_key] = True
        
        self.alerts_fired.labels(alert_type=alert_type, severity=severity).inc()
        
        log_level = {'critical': logging.CRITICAL, 'info': logging.INFO}.get(severity, logging.WARNING)
        logger.log(log_level, f"ALERT [{severity}] {alert_type}: {message}", extra=context)
        
        for callback in self.alert_callbacks:
            try:
                callback(alert_type, severity, context)
            except Exception as e:
                logger.error(f"Alert callback error: {e}")
    
    def check_skip_rate(self, skipped_count, total_count):
        if total_count == 0:
            return
        
        skip_rate = skipped_count / total_count
        if skip_rate > self.thresholds['skip_rate']:
            self._fire_alert(
                'high_skip_rate', 'warning',
                f"Skip rate {skip_rate:.2%} exceeds {self.thresholds['skip_rate']:.2%}",
                {'skip_rate': skip_rate, 'skipped_count': skipped_count, 'total_count': total_count}
            )
    
    def check_empty_period(self, selector, total):
        if total > 0:
            self.clear_alert('no_data', 'info')
            return
        self._fire_alert(
            'no_data', 'info',
            f"No visits for selected period '{selector}'",
            {'selector': selector}
        )
    
    def check_fetch_failure(self, error):
        self._fire_alert(
            'fetch_failure', 'critical',
            f"Visitor fetch failed: {error}",
            {'error_type': type(error).__name__, 'retryable': getattr(error, 'retryable', False)}
        )
    
    def check_invalid_range(self, error):
        self._fire_alert('invalid_range', 'warning', f"Invalid range: {error}", {})
    
    def clear_alert(self, alert_type, severity):
        alert_key = f"{alert_type}_{severity}"
        self.alert_state[alert_key] = False
