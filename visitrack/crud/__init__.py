"""CRUD operations module."""

from .visitor_sessions import (
    get_visitor_session_id_by_fingerprint,
    get_visitor_session_id_by_session_token,
    touch_visitor_session,
    create_visitor_session,
    set_visitor_location,
    get_recent_visitor_sessions,
    get_visitor_session_ids_idle_since,
    get_visitor_session_ids_by_recency,
    delete_visitor_sessions,
    count_visitor_sessions,
    count_visitor_sessions_idle_since,
)
from .visitor_stats import (
    increment_page_views,
    increment_unique_visitors,
    get_global_stats,
    get_daily_stats,
    get_recent_daily_stats,
    count_daily_stats,
    get_daily_stats_dates_before,
    delete_daily_stats,
)


__all__ = [
    # Visitor sessions
    "get_visitor_session_id_by_fingerprint",
    "get_visitor_session_id_by_session_token",
    "touch_visitor_session",
    "create_visitor_session",
    "set_visitor_location",
    "get_recent_visitor_sessions",
    "get_visitor_session_ids_idle_since",
    "get_visitor_session_ids_by_recency",
    "delete_visitor_sessions",
    "count_visitor_sessions",
    "count_visitor_sessions_idle_since",

    # Visitor stats
    "increment_page_views",
    "increment_unique_visitors",
    "get_global_stats",
    "get_daily_stats",
    "get_recent_daily_stats",
    "count_daily_stats",
    "get_daily_stats_dates_before",
    "delete_daily_stats",
]
