"""Authentication state for a single panel backend."""

import logging
from typing import Optional

from .models import BackendEndpoint, LoginFailure, LoginResult, PanelTransportError

logger = logging.getLogger(__name__)

# Session cookie names used by known panel forks, in preference order.
SESSION_COOKIE_NAMES = ("session", "3x-ui")


def extract_session_cookie(set_cookie_headers: list) -> Optional[str]:
    """Pick the session cookie out of a login response.

    Prefers a known session cookie name and falls back to the first cookie.
    Only the ``name=value`` part is returned, attributes are dropped.
    """
    cookies = [c.split(";", 1)[0].strip() for c in set_cookie_headers if c and c.strip()]
    if not cookies:
        return None

    for cookie in cookies:
        name = cookie.split("=", 1)[0]
        if name in SESSION_COOKIE_NAMES:
            return cookie
    return cookies[0]


class SessionManager:
    """Holds the session token for one backend.

    Usage:
        session = SessionManager(endpoint, requester)
        if session.ensure():
            headers = {"Cookie": session.token}
    """

    def __init__(self, endpoint: BackendEndpoint, requester):
        self.endpoint = endpoint
        self.requester = requester
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_valid(self) -> bool:
        return self._token is not None

    def login(self) -> LoginResult:
        """Authenticate and keep the session token.

        Returns:
            LoginResult with the token on success, or the failure reason
        """
        url = f"{self.endpoint.base_url}/login"
        logger.info(f"Logging in to panel {self.endpoint.base_url}")

        try:
            reply = self.requester.send(
                "POST",
                url,
                json_body={
                    "username": self.endpoint.username,
                    "password": self.endpoint.password,
                },
                headers={"Content-Type": "application/json"},
            )
        except PanelTransportError as e:
            logger.error(f"Login to {self.endpoint.base_url} failed: {e.message}")
            return LoginResult(failure=LoginFailure.TRANSPORT, detail=e.message)

        if not 200 <= reply.status_code < 300 or not reply.is_json_object or not reply.body.get("success"):
            detail = ""
            if reply.is_json_object:
                detail = reply.body.get("msg") or ""
            detail = detail or f"HTTP {reply.status_code}"
            logger.warning(f"Panel {self.endpoint.base_url} rejected login: {detail}")
            return LoginResult(failure=LoginFailure.REJECTED, detail=detail)

        token = extract_session_cookie(reply.cookies)
        if token is None:
            logger.error(f"Panel {self.endpoint.base_url} reported login success but set no cookie")
            return LoginResult(failure=LoginFailure.NO_COOKIE, detail="Login succeeded but no session cookie was issued")

        self._token = token
        logger.info(f"Logged in to panel {self.endpoint.base_url}")
        return LoginResult(token=token)

    def invalidate(self) -> None:
        """Drop the token so the next privileged call logs in again."""
        self._token = None

    def ensure(self) -> bool:
        """Log in if there is no session yet. Returns True when a session exists."""
        if self._token is not None:
            return True
        return self.login().ok
