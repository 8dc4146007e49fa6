from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Dict, Optional, List
from datetime import datetime

# ====================================================================================
# --- Tracking Schemas: what the page snippet sends and what it gets back. ---
# ====================================================================================
class ClientSignals(BaseModel):
    """
    Client-observable device and browser signals collected by the page snippet.
    These are the inputs to the fingerprint; none of them is trusted as identity.
    """
    user_agent: Optional[str] = Field(None, description="navigator.userAgent; falls back to the User-Agent header")
    language: str = Field("", description="navigator.language")
    screen_width: int = Field(0, description="screen.width")
    screen_height: int = Field(0, description="screen.height")
    color_depth: int = Field(0, description="screen.colorDepth")
    timezone_offset: int = Field(0, description="Date.getTimezoneOffset() in minutes")
    platform: str = Field("", description="navigator.platform")
    cookie_enabled: bool = Field(True, description="navigator.cookieEnabled")
    local_storage: bool = Field(True, description="Whether localStorage is available")
    session_storage: bool = Field(True, description="Whether sessionStorage is available")
    canvas_data_url: str = Field("", description="Data URL of the fixed-text fingerprint canvas")
    path: Optional[str] = Field(None, description="Path of the page being loaded")


class TrackResponse(BaseModel):
    """Outcome of a single page-load tracking call."""
    tracked: bool = Field(..., description="False when the load was skipped or tracking failed")
    is_unique: bool = Field(False, description="True when this load created a new visitor")
    is_reload: bool = Field(False, description="True when the tab already loaded a tracked page")
    session_id: Optional[str] = Field(None, description="Current visitor session token")
    fingerprint: Optional[str] = Field(None, description="Device fingerprint derived from the signals")
    reason: Optional[str] = Field(None, description="Why the load was not tracked")


# ====================================================================================
# --- Stats Schemas: read side of the counters. ---
# ====================================================================================
class DailyStat(BaseModel):
    """Counters for one calendar day."""
    date: str = Field(..., description="ISO date (YYYY-MM-DD)")
    unique_visitors: int = 0
    page_views: int = 0


class VisitorStatsResponse(BaseModel):
    """Global counters plus the most recent daily counters, oldest first."""
    unique_visitors: int = 0
    page_views: int = 0
    last_visit: Optional[datetime] = None
    daily_stats: List[DailyStat] = Field(default_factory=list)


class VisitorSessionOut(BaseModel):
    """A stored visitor session, as shown to admins."""
    id: str
    fingerprint: str
    client_hash: Optional[str] = None
    first_visit: Optional[datetime] = None
    last_visit: Optional[datetime] = None
    page_views: int = 1
    user_agent: str = "Unknown"
    is_bot: bool = False
    location: Dict[str, str] = Field(default_factory=dict)

    class Config:
        from_attributes = True


# ====================================================================================
# --- Maintenance Schemas ---
# ====================================================================================
class MaintenanceReport(BaseModel):
    """Rows deleted by one maintenance pass."""
    old_sessions_deleted: int = 0
    excess_sessions_deleted: int = 0
    old_daily_stats_deleted: int = 0
    started_at: datetime
    finished_at: datetime


class MaintenanceStats(BaseModel):
    total_sessions: int = 0
    old_sessions: int = 0
    total_daily_stats: int = 0
    last_maintenance: Optional[datetime] = None
    is_running: bool = False
