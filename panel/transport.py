"""HTTP requester used by the panel client.

The client only needs to send a request and read back the status code, the
JSON body and the Set-Cookie headers. Anything with a matching ``send``
method can be passed to PanelClient; RequestsRequester is the default and
wraps a requests.Session.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import requests
import urllib3

from .models import PanelTransportError

logger = logging.getLogger(__name__)


@dataclass
class HttpReply:
    """What the panel sent back."""

    status_code: int
    body: Any = None  # parsed JSON, None if the body was not JSON
    cookies: list = field(default_factory=list)  # raw Set-Cookie header values

    @property
    def is_json_object(self) -> bool:
        return isinstance(self.body, dict)


class RequestsRequester:
    """Default requester backed by requests."""

    def __init__(
        self,
        timeout: float = 15,
        verify_tls: bool = False,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.verify_tls = verify_tls
        self._session = session or requests.Session()
        self._session.verify = verify_tls
        if not verify_tls:
            # self-signed panel certificates are the norm
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def send(
        self,
        method: str,
        url: str,
        json_body: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> HttpReply:
        """Send one request.

        Raises:
            PanelTransportError: On connection errors and timeouts
        """
        try:
            response = self._session.request(
                method,
                url,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PanelTransportError(f"{method} {url} failed: {e}", e)

        try:
            body = response.json()
        except ValueError:
            body = None

        return HttpReply(
            status_code=response.status_code,
            body=body,
            cookies=self._set_cookie_headers(response),
        )

    def close(self) -> None:
        self._session.close()

    @staticmethod
    def _set_cookie_headers(response: requests.Response) -> list:
        """Every Set-Cookie header in arrival order.

        requests folds repeated headers into one comma-joined value, so read
        them from the underlying urllib3 response instead.
        """
        raw_headers = getattr(response.raw, "headers", None)
        if raw_headers is not None and hasattr(raw_headers, "getlist"):
            return list(raw_headers.getlist("Set-Cookie"))
        return [f"{c.name}={c.value}" for c in response.cookies]
