import logging
import time
import requests
from visitor_analytics.config import Config

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """The visitor snapshot could not be retrieved."""
    
    def __init__(self, message, retryable=True, error_type='unknown_error'):
        super().__init__(message)
        self.retryable = retryable
        self.error_type = error_type


class VisitorApiClient:
    """Fetches the full visitor tracking snapshot from the admin API."""
    
    def __init__(self, base_url=None, token=None, timeout=None, limit=None,
                 retries=None, retry_backoff=None, metrics=None):
        self.base_url = (base_url or Config.ANALYTICS_API_URL).rstrip('/')
        self.token = token if token is not None else Config.ANALYTICS_API_TOKEN
        self.timeout = Config.FETCH_TIMEOUT_SECONDS if timeout is None else timeout
        self.limit = Config.FETCH_LIMIT if limit is None else limit
        self.retries = Config.FETCH_RETRIES if retries is None else retries
        self.retry_backoff = Config.FETCH_RETRY_BACKOFF_SECONDS if retry_backoff is None else retry_backoff
        self.metrics = metrics
    
    @property
    def url(self):
        return f"{self.base_url}/api/overview"
    
    def _headers(self):
        headers = {'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"
        return headers
    
    def _fetch_once(self):
        try:
            resp = requests.get(self.url, params={'limit': self.limit},
                                headers=self._headers(), timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise FetchError(f"Visitor API timed out: {e}", error_type='timeout') from e
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Visitor API unreachable: {e}", error_type='connection_error') from e
        
        if resp.status_code >= 400:
            # 4xx other than 429 is final
            retryable = resp.status_code >= 500 or resp.status_code == 429
            raise FetchError(f"Visitor API returned HTTP {resp.status_code}",
                             retryable=retryable, error_type='http_error')
        
        try:
            body = resp.json()
        except ValueError as e:
            raise FetchError("Visitor API returned a non-JSON body", error_type='invalid_response') from e
        
        if not isinstance(body, dict) or not body.get('success'):
            message = body.get('message') if isinstance(body, dict) else None
            raise FetchError(f"Visitor API reported an error: {message or 'unknown'}",
                             error_type='api_error')
        
        data = body.get('data')
        if not isinstance(data, list):
            raise FetchError("Visitor API response has no data list", retryable=False,
                             error_type='invalid_response')
        return data
    
    def fetch_events(self):
        """Returns the raw visitor records, retrying transient failures."""
        attempt = 0
        while True:
            attempt += 1
            start = time.time()
            try:
                data = self._fetch_once()
            except FetchError as e:
                if self.metrics:
                    self.metrics.record_fetch_error(e.error_type)
                if not e.retryable or attempt > self.retries:
                    logger.error(f"Fetch failed after {attempt} attempt(s): {e}")
                    raise
                logger.warning(f"Fetch attempt {attempt} failed, retrying: {e}")
                time.sleep(self.retry_backoff * attempt)
                continue
            
            if self.metrics:
                self.metrics.record_fetch(time.time() - start)
            logger.info(f"Fetched {len(data)} visitor records from {self.url}")
            return data
