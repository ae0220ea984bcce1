"""Route fallback across panel forks.

Forks of the panel expose the same operations under different paths. Each
operation has a fixed, ordered list of known routes; the prober walks it one
request at a time until a route gives a definite answer.
"""

import logging
from enum import Enum
from typing import Optional

from .models import PanelTransportError, ProbeOutcome, ProbeStatus
from .session import SessionManager

logger = logging.getLogger(__name__)


class OperationKind(str, Enum):
    ADD_CLIENT = "add_client"
    DELETE_CLIENT = "delete_client"
    LIST_INBOUNDS = "list_inbounds"


DIALECT_ROUTES = {
    OperationKind.ADD_CLIENT: (
        ("POST", "/panel/api/inbounds/addClient"),  # 3x-ui (MHSanaei)
        ("POST", "/xui/API/inbounds/addClient"),  # FranzKafkaYu / alireza0
        ("POST", "/panel/inbounds/addClient"),
        ("POST", "/xui/inbound/addClient"),  # original x-ui
    ),
    OperationKind.DELETE_CLIENT: (
        ("POST", "/panel/api/inbounds/delClient/{inbound_id}/{credential_id}"),
        ("POST", "/xui/API/inbounds/delClient/{inbound_id}/{credential_id}"),
        ("POST", "/panel/inbound/delClient/{inbound_id}/{credential_id}"),
    ),
    OperationKind.LIST_INBOUNDS: (
        ("GET", "/panel/api/inbounds/list"),
        ("GET", "/xui/API/inbounds/list"),
        ("GET", "/panel/inbounds/list"),
        ("GET", "/xui/inbound/list"),
    ),
}


class DialectProber:
    """Runs an operation against the first route of the backend's dialect that answers."""

    def __init__(self, session: SessionManager, requester, routes: Optional[dict] = None):
        self.session = session
        self.requester = requester
        self.routes = routes or DIALECT_ROUTES

    @property
    def base_url(self) -> str:
        return self.session.endpoint.base_url

    def _headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Referer": f"{self.base_url}/panel/inbounds",
            "Origin": self.base_url,
        }
        if self.session.token:
            headers["Cookie"] = self.session.token
        return headers

    def probe(
        self,
        kind: OperationKind,
        path_params: Optional[dict] = None,
        body: Optional[dict] = None,
    ) -> ProbeOutcome:
        """Try each route for ``kind`` in order.

        Args:
            kind: Logical operation
            path_params: Values substituted into the route templates
            body: JSON body for the request, if any

        Returns:
            ProbeOutcome; SESSION_EXPIRED means the whole operation should be retried
        """
        candidates = self.routes[kind]
        attempts = 0

        for index, (method, template) in enumerate(candidates):
            route = template.format(**(path_params or {}))
            url = f"{self.base_url}{route}"
            attempts += 1
            logger.debug(f"Trying {kind.value} at {method} {url}")

            try:
                reply = self.requester.send(method, url, json_body=body, headers=self._headers())
            except PanelTransportError as e:
                logger.error(f"{kind.value} at {route} failed: {e.message}")
                return ProbeOutcome(ProbeStatus.TRANSPORT, message=e.message, route=route, attempts=attempts)

            if reply.status_code == 404:
                logger.debug(f"Route {route} not found (404), trying next")
                continue

            if reply.status_code == 401:
                if index == 0:
                    logger.warning(f"Session expired on {self.base_url}, logging in again")
                    self.session.invalidate()
                    self.session.login()
                    return ProbeOutcome(
                        ProbeStatus.SESSION_EXPIRED,
                        message="Session expired",
                        route=route,
                        attempts=attempts,
                    )
                return ProbeOutcome(
                    ProbeStatus.DEFINITE_FAILURE,
                    message=f"Unauthorized (401) at {route}",
                    route=route,
                    attempts=attempts,
                )

            if not 200 <= reply.status_code < 300:
                logger.error(f"{kind.value} at {route} returned HTTP {reply.status_code}")
                return ProbeOutcome(
                    ProbeStatus.TRANSPORT,
                    message=f"HTTP {reply.status_code} at {route}",
                    route=route,
                    attempts=attempts,
                )

            if reply.is_json_object:
                if reply.body.get("success") is True:
                    return ProbeOutcome(ProbeStatus.SUCCESS, payload=reply.body, route=route, attempts=attempts)
                message = reply.body.get("msg")
                if message:
                    return ProbeOutcome(
                        ProbeStatus.DEFINITE_FAILURE,
                        payload=reply.body,
                        message=str(message),
                        route=route,
                        attempts=attempts,
                    )

            # 2xx without a usable verdict, usually an HTML page on a non-API route
            logger.debug(f"Route {route} gave no verdict, trying next")

        logger.warning(f"No route for {kind.value} answered on {self.base_url}")
        return ProbeOutcome(
            ProbeStatus.ALL_DIALECTS_EXHAUSTED,
            message="All API endpoints failed (404). Check panel version.",
            attempts=attempts,
        )
