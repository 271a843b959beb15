"""
Session identity.

A learner is identified by a random, client-generated session id instead of
an account. The id may arrive from several places, checked in priority
order:

    1. durable store   (the ``mathTutorSessionId`` cookie)
    2. ephemeral store (the ``X-Session-Id`` request header)
    3. URL query parameter ``session``
    4. URL fragment containing ``session=``

The first source that yields a value wins and is copied into every
higher-priority store that was empty or malformed, so a shared link keeps working on
reload.

Ids end up as part of database document keys, so only ids made of
letters, digits, ``-`` and ``_`` (at most 64 characters) are accepted.
Anything else is treated as absent.
"""

from typing import MutableMapping, Optional, List
from urllib.parse import urlsplit, parse_qs
import logging
import re
import uuid

from fastapi import Request, Response

from mathtutor.core.config import settings
from mathtutor.core.exceptions import SessionRequired
from mathtutor.core.logging import short_session

logger = logging.getLogger(__name__)

CLIENT_URL_HEADER = "X-Client-Url"
SESSION_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,64}")


def is_valid_session_id(value: Optional[str]) -> bool:
    return bool(value) and SESSION_ID_PATTERN.fullmatch(value) is not None


class SessionLocator:
    """Resolves and stores the session id across redundant stores."""

    def __init__(
        self,
        durable: MutableMapping[str, str],
        ephemeral: MutableMapping[str, str],
        url: Optional[str] = None,
        key: str = settings.SESSION_COOKIE_NAME
    ):
        self.durable = durable
        self.ephemeral = ephemeral
        self.url = url or ""
        self.key = key
        self.source: Optional[str] = None

    # ========================================================================
    # LOOKUP
    # ========================================================================

    def get_session(self) -> Optional[str]:
        """
        Find the session id, backfilling empty higher-priority stores.

        Returns:
            The session id, or None when no source has one
        """
        candidates = [
            ("durable", lambda: self.durable.get(self.key)),
            ("ephemeral", lambda: self.ephemeral.get(self.key)),
            ("query", self._from_query),
            ("fragment", self._from_fragment),
        ]

        for position, (source, read) in enumerate(candidates):
            value = read()
            if not value:
                continue
            if not is_valid_session_id(value):
                logger.warning(f"⚠️ Ignoring malformed session id from {source}")
                continue

            self.source = source
            self._backfill(value, [name for name, _ in candidates[:position]])
            if position > 0:
                logger.info(f"🔗 Session {short_session(value)} restored from {source}")
            return value

        self.source = None
        return None

    def _from_query(self) -> Optional[str]:
        values = parse_qs(urlsplit(self.url).query).get("session")
        return values[0] if values else None

    def _from_fragment(self) -> Optional[str]:
        fragment = urlsplit(self.url).fragment
        if "session=" not in fragment:
            return None
        value = fragment.split("session=", 1)[1].split("&", 1)[0]
        return value or None

    def _backfill(self, value: str, sources: List[str]) -> None:
        for source in sources:
            store = self._store(source)
            if store is not None and not is_valid_session_id(store.get(self.key)):
                store[self.key] = value

    def _store(self, source: str) -> Optional[MutableMapping[str, str]]:
        if source == "durable":
            return self.durable
        if source == "ephemeral":
            return self.ephemeral
        return None

    # ========================================================================
    # MUTATION
    # ========================================================================

    def set_session(self, session_id: str) -> None:
        """Write the id to both stores."""
        self.durable[self.key] = session_id
        self.ephemeral[self.key] = session_id

    def create_session(self) -> str:
        """Generate and store a fresh session id."""
        session_id = str(uuid.uuid4())
        self.set_session(session_id)
        self.source = "created"
        logger.info(f"🆕 Created session {short_session(session_id)}")
        return session_id

    def get_or_create(self) -> str:
        return self.get_session() or self.create_session()

    def reset(self) -> None:
        """Forget the current session in every writable store."""
        self.durable.pop(self.key, None)
        self.ephemeral.pop(self.key, None)
        self.source = None


# ============================================================================
# FASTAPI BINDING
# ============================================================================

def locator_for_request(request: Request) -> SessionLocator:
    """Build a locator over the request's cookie, header and URL."""
    durable = {}
    cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if cookie:
        durable[settings.SESSION_COOKIE_NAME] = cookie

    ephemeral = {}
    header = request.headers.get(settings.SESSION_HEADER_NAME)
    if header:
        ephemeral[settings.SESSION_COOKIE_NAME] = header

    # Fragments never reach the server, so clients forward their full URL
    url = request.headers.get(CLIENT_URL_HEADER) or str(request.url)
    return SessionLocator(durable, ephemeral, url=url)


def bind_session(response: Response, session_id: str) -> None:
    """Persist the session id on the response (cookie + echo header)."""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_id,
        max_age=settings.SESSION_COOKIE_MAX_AGE,
        httponly=False,
        samesite="lax",
        secure=settings.is_production
    )
    response.headers[settings.SESSION_HEADER_NAME] = session_id


def require_session(request: Request, response: Response) -> str:
    """FastAPI dependency: the caller's session id, or 400."""
    session_id = locator_for_request(request).get_session()
    if not session_id:
        raise SessionRequired()
    bind_session(response, session_id)
    return session_id


def get_or_create_session(request: Request, response: Response) -> str:
    """FastAPI dependency: the caller's session id, creating one if absent."""
    session_id = locator_for_request(request).get_or_create()
    bind_session(response, session_id)
    return session_id


def clear_session(response: Response) -> None:
    response.delete_cookie(settings.SESSION_COOKIE_NAME)


def optional_session(request: Request) -> Optional[str]:
    """FastAPI dependency: the caller's session id if any, never created."""
    return locator_for_request(request).get_session()
