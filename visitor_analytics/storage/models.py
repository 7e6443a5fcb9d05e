import json
from datetime import date, datetime, timezone
from typing import List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def parse_timestamp(value):
    """Parse an ISO-8601 string or datetime into an aware UTC datetime."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    if not isinstance(value, datetime):
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError(f"Timestamp out of range: {value.isoformat()}") from e


def _optional_text(value):
    """Scalars become strings; anything else in an optional text column is dropped."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


class VisitorEvent(BaseModel):
    """One raw visit record as supplied by the visitor tracking API."""
    
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    
    id: Optional[int] = None
    timestamp: datetime = Field(validation_alias=AliasChoices('timestamp', 'created_at', 'createdAt'))
    ip_address: Optional[str] = Field(default=None, validation_alias=AliasChoices('ip_address', 'ipAddress'))
    location: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    timezone: Optional[str] = None
    user_agent: Optional[str] = Field(default=None, validation_alias=AliasChoices('user_agent', 'userAgent'))
    page_url: Optional[str] = Field(default=None, validation_alias=AliasChoices('page_url', 'pageUrl'))
    referrer: Optional[str] = None
    session_id: Optional[str] = Field(default=None, validation_alias=AliasChoices('session_id', 'sessionId'))
    
    @field_validator('timestamp', mode='before')
    @classmethod
    def _parse_timestamp(cls, v):
        return parse_timestamp(v)
    
    @field_validator('id', mode='before')
    @classmethod
    def _coerce_id(cls, v):
        if isinstance(v, bool):
            return None
        try:
            return int(v) if v is not None else None
        except (TypeError, ValueError, OverflowError):
            return None
    
    @field_validator('location', mode='before')
    @classmethod
    def _coerce_location(cls, v):
        # Some API versions already decode the location column
        if isinstance(v, dict):
            return json.dumps(v)
        return _optional_text(v)
    
    @field_validator('ip_address', 'country', 'city', 'region', 'timezone',
                     'user_agent', 'page_url', 'referrer', 'session_id', mode='before')
    @classmethod
    def _coerce_text(cls, v):
        return _optional_text(v)


class ResolvedRange(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    start: datetime
    end: datetime
    
    def contains(self, instant):
        return self.start <= instant <= self.end


class DailyBucket(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    date: date
    count: int = Field(..., ge=0)
    views: int = Field(..., ge=0)
    unique_visitors: int = Field(default=0, ge=0, serialization_alias='uniqueVisitors')
    label: str = ''


class CountryCount(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    country: str
    count: int = Field(..., ge=0)


class PageCount(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    page: str
    count: int = Field(..., ge=0)


class BrowserCount(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    browser: str
    count: int = Field(..., ge=0)


class Summary(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    total: int = Field(..., ge=0)
    unique_visitors: int = Field(..., ge=0, serialization_alias='uniqueVisitors')
    top_countries: List[CountryCount] = Field(default_factory=list, serialization_alias='topCountries')
    top_pages: List[PageCount] = Field(default_factory=list, serialization_alias='topPages')
    per_day: List[DailyBucket] = Field(default_factory=list, serialization_alias='perDay')
    browsers: List[BrowserCount] = Field(default_factory=list)
    daily_average: int = Field(default=0, ge=0, serialization_alias='dailyAverage')
    peak_day: int = Field(default=0, ge=0, serialization_alias='peakDay')


class RecentVisit(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    id: Optional[int] = None
    ip: str
    location: str
    timestamp: datetime
    page: str
    browser: str


class AnalyticsResult(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    selector: str
    range: ResolvedRange
    summary: Summary
    recent_visits: List[RecentVisit] = Field(default_factory=list, serialization_alias='recentVisits')
