from datetime import datetime, timezone

from visitrack import crud
from visitrack.core.aggregation_service import CounterAggregator, today_string


def test_today_string_is_utc_iso_date():
    assert today_string(datetime(2024, 1, 1, 23, 59, tzinfo=timezone.utc)) == "2024-01-01"


def test_page_view_creates_missing_records(db):
    CounterAggregator().record_page_view(db, "2024-01-01")

    global_stats = crud.get_global_stats(db)
    daily = crud.get_daily_stats(db, "2024-01-01")
    assert (global_stats.page_views, global_stats.unique_visitors) == (1, 0)
    assert (daily.page_views, daily.unique_visitors) == (1, 0)
    assert daily.date == "2024-01-01"
    assert daily.last_update is not None


def test_page_views_accumulate_per_day(db):
    aggregator = CounterAggregator()
    aggregator.record_page_view(db, "2024-01-01")
    aggregator.record_page_view(db, "2024-01-01")
    aggregator.record_page_view(db, "2024-01-02")

    db.expire_all()
    assert crud.get_global_stats(db).page_views == 3
    assert crud.get_daily_stats(db, "2024-01-01").page_views == 2
    assert crud.get_daily_stats(db, "2024-01-02").page_views == 1


def test_unique_visitor_increments_and_stamps_last_visit(db):
    aggregator = CounterAggregator()
    aggregator.record_page_view(db, "2024-01-01")
    aggregator.record_unique_visitor(db, "2024-01-01")

    db.expire_all()
    global_stats = crud.get_global_stats(db)
    daily = crud.get_daily_stats(db, "2024-01-01")
    assert (global_stats.page_views, global_stats.unique_visitors) == (1, 1)
    assert (daily.page_views, daily.unique_visitors) == (1, 1)
    assert global_stats.last_visit is not None
    assert daily.last_visit is not None


def test_unique_visitor_without_prior_page_view_creates_records(db):
    CounterAggregator().record_unique_visitor(db, "2024-03-05")

    assert crud.get_global_stats(db).unique_visitors == 1
    assert crud.get_global_stats(db).page_views == 0
    assert crud.get_daily_stats(db, "2024-03-05").unique_visitors == 1


def test_recent_daily_stats_are_oldest_first(db):
    aggregator = CounterAggregator()
    for date in ["2024-01-03", "2024-01-01", "2024-01-02", "2024-01-04"]:
        aggregator.record_page_view(db, date)

    rows = crud.get_recent_daily_stats(db, 3)
    assert [row.date for row in rows] == ["2024-01-02", "2024-01-03", "2024-01-04"]
