"""Page-load tracking endpoint called by the site snippet."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db
from ..core.geolocation import location_enricher
from ..core.session_tokens import CookieStorage, SessionTokenStore, VISITOR_SESSION_KEY, SESSION_PAGE_KEY
from ..core.tracker import visitor_tracker
from .. import schemas

router = APIRouter(tags=["Tracking"])


@router.post("/track", response_model=schemas.TrackResponse, status_code=status.HTTP_202_ACCEPTED)
def track_page_load(
    signals: schemas.ClientSignals,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
) -> schemas.TrackResponse:
    """
    Record one page load. Bots and excluded paths are acknowledged but not counted.
    Tracking failures are reported in the body, never as an error status.
    """
    persistent = CookieStorage(
        request.cookies,
        keys=[VISITOR_SESSION_KEY],
        max_age=settings.SESSION_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60,
        secure=settings.SESSION_COOKIE_SECURE,
    )
    tab = CookieStorage(request.cookies, keys=[SESSION_PAGE_KEY], secure=settings.SESSION_COOKIE_SECURE)
    tokens = SessionTokenStore(persistent, tab, session_duration_ms=settings.session_duration_ms)

    result = visitor_tracker.track_visit(
        db,
        signals,
        tokens,
        user_agent=request.headers.get("user-agent", ""),
        client_ip=location_enricher.get_client_ip(request),
        schedule=background_tasks.add_task,
    )

    persistent.apply(response)
    tab.apply(response)

    return schemas.TrackResponse(
        tracked=result.tracked,
        is_unique=result.is_unique,
        is_reload=result.is_reload,
        session_id=result.session_id,
        fingerprint=result.fingerprint,
        reason=result.reason,
    )
