"""Client-side session token and same-tab reload flag.

Both values live with the client. Over HTTP the persisted token is a
long-lived cookie and the reload flag a browser-session cookie (no Max-Age),
which is cleared when the browser closes.
"""

import base64
import binascii
import json
import logging
import secrets
import string
import time
from typing import Callable, Dict, Iterable, Iterator, Mapping, Optional, Set

from starlette.responses import Response

logger = logging.getLogger(__name__)

VISITOR_SESSION_KEY = "visitor_session_v2"
SESSION_PAGE_KEY = "session_page_visited"
DEFAULT_SESSION_DURATION_MS = 24 * 60 * 60 * 1000
# visitor_sessions.session_id column width
SESSION_ID_MAX_LENGTH = 64

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase


def _now_ms() -> int:
    return int(time.time() * 1000)


def new_session_id(now_ms: int) -> str:
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(9))
    return f"session_{now_ms}_{suffix}"


class SessionTokenStore:
    """Manage the time-boxed session token and the per-tab visited flag.

    ``persistent`` survives browser restarts, ``tab`` does not. Both are plain
    string mappings so the store works against cookies, dicts, or anything else.
    """

    def __init__(
        self,
        persistent: Mapping[str, str],
        tab: Mapping[str, str],
        session_duration_ms: int = DEFAULT_SESSION_DURATION_MS,
        clock: Callable[[], int] = _now_ms,
    ):
        self.persistent = persistent
        self.tab = tab
        self.session_duration_ms = session_duration_ms
        self.clock = clock

    def get_or_create_session_id(self) -> str:
        """Return the stored token, or mint a new one if absent or expired.

        The timestamp is not refreshed on read: a session lasts a fixed time
        from creation.
        """
        now = self.clock()
        stored = self.persistent.get(VISITOR_SESSION_KEY)
        if stored:
            try:
                data = json.loads(stored)
                session_id = data["sessionId"]
                if not isinstance(session_id, str) or not 0 < len(session_id) <= SESSION_ID_MAX_LENGTH:
                    raise ValueError("sessionId must be a non-empty string")
                if now - int(data["timestamp"]) < self.session_duration_ms:
                    return session_id
            except (ValueError, KeyError, TypeError):
                logger.debug("Discarding malformed visitor session token")

        session_id = new_session_id(now)
        self.persistent[VISITOR_SESSION_KEY] = json.dumps({"sessionId": session_id, "timestamp": now})
        return session_id

    def is_page_reload_within_tab(self) -> bool:
        """False on the first call in a tab (and sets the flag), True afterwards."""
        if not self.tab.get(SESSION_PAGE_KEY):
            self.tab[SESSION_PAGE_KEY] = "true"
            return False
        return True


class CookieStorage(Mapping):
    """String mapping over request cookies that records writes for the response.

    Values are base64url encoded so JSON survives cookie quoting rules.
    ``max_age=None`` produces browser-session cookies.
    """

    def __init__(
        self,
        cookies: Mapping[str, str],
        keys: Iterable[str],
        max_age: Optional[int] = None,
        secure: bool = False,
    ):
        self._values: Dict[str, str] = {}
        for key in keys:
            raw = cookies.get(key)
            if not raw:
                continue
            decoded = self._decode(raw)
            if decoded:
                self._values[key] = decoded
        self._changed: Set[str] = set()
        self.max_age = max_age
        self.secure = secure

    @staticmethod
    def _encode(value: str) -> str:
        return base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii").rstrip("=")

    @staticmethod
    def _decode(raw: str) -> Optional[str]:
        padded = raw + "=" * (-len(raw) % 4)
        try:
            return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
        except (binascii.Error, UnicodeError, ValueError):
            return None

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._values[key] = value
        self._changed.add(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def apply(self, response: Response) -> None:
        """Write changed keys to the response as Set-Cookie headers."""
        for key in self._changed:
            response.set_cookie(
                key,
                self._encode(self._values[key]),
                max_age=self.max_age,
                httponly=True,
                secure=self.secure,
                samesite="lax",
            )
