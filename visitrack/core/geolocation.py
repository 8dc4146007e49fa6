"""
Best-effort approximate location for new visitors.
"""

import ipaddress
import requests
import logging
from typing import Callable, Optional, Dict, Any
from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .database import SessionLocal
from .. import crud

logger = logging.getLogger(__name__)


class LocationEnricher:
    """Resolves {country, city} from an IP geolocation service and attaches it to visitors."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        url: str = settings.GEOLOCATION_URL,
        ip_url: str = settings.GEOLOCATION_IP_URL,
        timeout: float = settings.GEOLOCATION_TIMEOUT_SECONDS,
    ):
        self.session_factory = session_factory
        self.url = url
        self.ip_url = ip_url
        self.timeout = timeout

    def resolve_approximate_location(self, ip_address: Optional[str] = None) -> Dict[str, str]:
        """Get an approximate location, or {} on any failure.

        Without a routable ``ip_address`` the service locates the caller's own
        network address.
        """
        url = self.ip_url.format(ip=ip_address) if self._is_routable(ip_address) else self.url
        try:
            response = requests.get(url, timeout=self.timeout)
            if not response.ok:
                logger.warning(f"Geolocation lookup returned HTTP {response.status_code}")
                return {}
            return self._parse_location_data(response.json())
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Could not get location from {url}: {e}")
            return {}

    def _parse_location_data(self, data: Any) -> Dict[str, str]:
        """Keep only the fields present in the response."""
        if not isinstance(data, dict):
            return {}
        location = {}
        if isinstance(data.get("country_name"), str):
            location["country"] = data["country_name"]
        if isinstance(data.get("city"), str):
            location["city"] = data["city"]
        return location

    @staticmethod
    def _is_routable(ip_address: Optional[str]) -> bool:
        if not ip_address:
            return False
        try:
            ip = ipaddress.ip_address(ip_address)
        except ValueError:
            return False
        return not (ip.is_loopback or ip.is_private or ip.is_unspecified or ip.is_link_local)

    def enrich_visitor_session(self, visitor_id: str, ip_address: Optional[str] = None) -> Dict[str, str]:
        """Resolve a location and store it on the visitor. Never raises.

        A failed lookup is stored as {} so the visitor is no longer pending;
        there is no retry.
        """
        location = self.resolve_approximate_location(ip_address)
        db = self.session_factory()
        try:
            crud.set_visitor_location(db, visitor_id, location)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store location for visitor {visitor_id}: {e}")
            db.rollback()
        finally:
            db.close()
        return location

    def get_client_ip(self, request: Request) -> Optional[str]:
        """Extract the client's real IP address from the request."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else None


location_enricher = LocationEnricher()
