import os
from dotenv import load_dotenv

load_dotenv()


def _get_env(key, default=None):
    val = os.getenv(key, default)
    if val is None:
        raise ValueError(f"Missing required env var: {key}")
    return val


def _get_env_int(key, default=None):
    val = os.getenv(key)
    return int(val) if val else default


def _get_env_float(key, default=None):
    val = os.getenv(key)
    return float(val) if val else default


class Config:
    """Application configuration from environment variables."""
    
    ANALYTICS_API_URL = _get_env("ANALYTICS_API_URL", "http://localhost:3000")
    ANALYTICS_API_TOKEN = os.getenv("ANALYTICS_API_TOKEN")
    FETCH_TIMEOUT_SECONDS = _get_env_float("FETCH_TIMEOUT_SECONDS", 10.0)
    FETCH_LIMIT = _get_env_int("FETCH_LIMIT", 1000)
    FETCH_RETRIES = _get_env_int("FETCH_RETRIES", 3)
    FETCH_RETRY_BACKOFF_SECONDS = _get_env_float("FETCH_RETRY_BACKOFF_SECONDS", 0.5)
    
    TOP_COUNTRIES_LIMIT = _get_env_int("TOP_COUNTRIES_LIMIT", 5)
    TOP_PAGES_LIMIT = _get_env_int("TOP_PAGES_LIMIT", 10)
    RECENT_VISITS_LIMIT = _get_env_int("RECENT_VISITS_LIMIT", 10)
    DEFAULT_RANGE = _get_env("DEFAULT_RANGE", "week")
    MAX_CUSTOM_RANGE_DAYS = _get_env_int("MAX_CUSTOM_RANGE_DAYS", 3660)
    
    METRICS_ENABLED = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    METRICS_PORT = _get_env_int("METRICS_PORT", 8003)
    
    ALERT_SKIP_RATE_THRESHOLD = _get_env_float("ALERT_SKIP_RATE_THRESHOLD", 0.05)
    LOG_LEVEL = _get_env("LOG_LEVEL", "INFO")
