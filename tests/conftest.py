"""Shared fixtures: a scripted panel double and sample inbounds."""

import json
from dataclasses import dataclass
from typing import Optional

import pytest

from panel import BackendEndpoint, HttpReply, PanelClient

BASE_URL = "https://panel.example.com:2053"

ADD_ROUTES = [
    "/panel/api/inbounds/addClient",
    "/xui/API/inbounds/addClient",
    "/panel/inbounds/addClient",
    "/xui/inbound/addClient",
]
LIST_ROUTES = [
    "/panel/api/inbounds/list",
    "/xui/API/inbounds/list",
    "/panel/inbounds/list",
    "/xui/inbound/list",
]


@dataclass
class RecordedRequest:
    method: str
    path: str
    json_body: Optional[dict]
    headers: Optional[dict]


class FakePanel:
    """Backend double.

    Replies are scripted per (method, path); unscripted routes answer 404.
    A scripted list of several replies is consumed in order, the last one
    repeats. Every request is recorded.
    """

    def __init__(self, base_url: str = BASE_URL):
        self.base_url = base_url
        self.routes = {}
        self.requests = []
        self.login_replies = [
            HttpReply(200, {"success": True, "msg": "Login Successfully"}, ["3x-ui=abc123; Path=/; HttpOnly"])
        ]

    def on(self, method: str, path: str, *replies):
        self.routes[(method, path)] = list(replies)

    def on_login(self, *replies):
        self.login_replies = list(replies)

    def send(self, method, url, json_body=None, headers=None):
        assert url.startswith(self.base_url), url
        path = url[len(self.base_url):]
        self.requests.append(RecordedRequest(method, path, json_body, headers))

        if path == "/login":
            queue = self.login_replies
        else:
            queue = self.routes.get((method, path), [HttpReply(404, None)])
        reply = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def login_count(self) -> int:
        return len([r for r in self.requests if r.path == "/login"])

    def paths(self, contains: str = "") -> list:
        return [r.path for r in self.requests if contains in r.path]


def ok(obj=None, msg=""):
    body = {"success": True, "msg": msg}
    if obj is not None:
        body["obj"] = obj
    return HttpReply(200, body)


def fail(msg):
    return HttpReply(200, {"success": False, "msg": msg})


def inbound_entry(
    id=1,
    port=443,
    protocol="vless",
    settings=None,
    stream=None,
    client_stats=None,
):
    """One panel inbound as returned by the list endpoint (settings JSON-encoded)."""
    return {
        "id": id,
        "port": port,
        "protocol": protocol,
        "remark": f"{protocol}-{port}",
        "enable": True,
        "settings": json.dumps(settings if settings is not None else {"clients": []}),
        "streamSettings": json.dumps(stream if stream is not None else {"network": "tcp", "security": "none"}),
        "clientStats": client_stats or [],
    }


def sent_client(request: RecordedRequest) -> dict:
    """The client object inside an addClient request body."""
    return json.loads(request.json_body["settings"])["clients"][0]


@pytest.fixture
def panel():
    return FakePanel()


@pytest.fixture
def endpoint():
    return BackendEndpoint(BASE_URL, "admin", "secret")


@pytest.fixture
def client(endpoint, panel):
    return PanelClient(endpoint, requester=panel)
