"""Tests for share link building."""

import base64
import json

import pytest

from panel import BackendEndpoint, PanelClient, parse_vless_uri
from panel.links import build_share_link, build_vless_uri
from panel.models import Inbound

from conftest import LIST_ROUTES, inbound_entry, ok


def make_inbound(protocol, stream=None, settings=None, port=443):
    return Inbound.from_dict(inbound_entry(protocol=protocol, port=port, stream=stream, settings=settings))


REALITY_WS = {
    "network": "ws",
    "security": "reality",
    "wsSettings": {"path": "/ws"},
    "realitySettings": {"publicKey": "PBK", "fingerprint": "chrome", "serverNames": ["example.com", "alt.com"]},
}


class TestVless:
    def test_reality_ws_parameter_order(self):
        inbound = make_inbound("vless", REALITY_WS)

        link = build_vless_uri(inbound, "h", "U", "mail", "Name")

        assert link == "vless://U@h:443?type=ws&security=reality&pbk=PBK&fp=chrome&sni=example.com&path=%2Fws#Name"

    def test_reality_nested_settings(self):
        stream = {
            "network": "tcp",
            "security": "reality",
            "realitySettings": {
                "serverNames": ["yahoo.com"],
                "settings": {"publicKey": "KEY", "fingerprint": "firefox"},
            },
        }

        link = build_share_link(make_inbound("vless", stream), "h", "U", "mail", "Name")

        assert link == "vless://U@h:443?type=tcp&security=reality&pbk=KEY&fp=firefox&sni=yahoo.com#Name"

    def test_tls_tcp(self):
        inbound = make_inbound("vless", {"network": "tcp", "security": "tls"}, port=8443)

        assert build_share_link(inbound, "h", "U", "m", "Name") == "vless://U@h:8443?type=tcp&security=tls#Name"

    def test_ws_default_path_and_encoded_name(self):
        inbound = make_inbound("vless", {"network": "ws", "security": "none"})

        link = build_share_link(inbound, "h", "U", "m", "My VPN #1")

        assert link == "vless://U@h:443?type=ws&path=%2F#My%20VPN%20%231"

    def test_parse_round_trip(self):
        link = build_share_link(make_inbound("vless", REALITY_WS), "vpn.example.com", "U", "m", "Main server")

        parsed = parse_vless_uri(link)

        assert parsed["uuid"] == "U"
        assert parsed["host"] == "vpn.example.com"
        assert parsed["port"] == 443
        assert list(parsed["params"]) == ["type", "security", "pbk", "fp", "sni", "path"]
        assert parsed["params"]["path"] == "/ws"
        assert parsed["remark"] == "Main server"

    def test_parse_rejects_other_schemes(self):
        with pytest.raises(ValueError):
            parse_vless_uri("vmess://abc")


class TestVmess:
    def decode(self, link):
        assert link.startswith("vmess://")
        return json.loads(base64.b64decode(link[len("vmess://"):]))

    def test_ws_tls(self):
        inbound = make_inbound("vmess", {"network": "ws", "security": "tls", "wsSettings": {"path": "/v"}})

        config = self.decode(build_share_link(inbound, "h", "U", "m", "Name"))

        assert config == {
            "v": "2",
            "ps": "Name",
            "add": "h",
            "port": 443,
            "id": "U",
            "aid": "0",
            "scy": "auto",
            "net": "ws",
            "type": "none",
            "host": "",
            "path": "/v",
            "tls": "tls",
        }

    def test_plain_tcp(self):
        config = self.decode(build_share_link(make_inbound("vmess"), "h", "U", "m", "Name"))

        assert config["net"] == "tcp"
        assert config["path"] == "/"
        assert config["tls"] == ""


class TestShadowsocks:
    SETTINGS = {
        "method": "2022-blake3-aes-128-gcm",
        "clients": [{"email": "ss_user", "password": "c2VjcmV0c2VjcmV0MTIzNA=="}],
    }

    def test_link(self):
        inbound = make_inbound("shadowsocks", settings=self.SETTINGS, port=8388)

        link = build_share_link(inbound, "h", "U", "ss_user", "SS Node")

        user_info = base64.b64encode(b"2022-blake3-aes-128-gcm:c2VjcmV0c2VjcmV0MTIzNA==").decode()
        assert link == f"ss://{user_info}@h:8388#SS%20Node"

    def test_password_defaults_to_credential_id(self):
        settings = {"method": "aes-256-gcm", "clients": [{"email": "ss_user"}]}
        inbound = make_inbound("shadowsocks", settings=settings)

        link = build_share_link(inbound, "h", "U", "ss_user", "n")

        assert base64.b64decode(link[len("ss://"):].split("@")[0]) == b"aes-256-gcm:U"

    def test_unknown_email(self):
        inbound = make_inbound("shadowsocks", settings=self.SETTINGS)

        assert build_share_link(inbound, "h", "U", "someone_else", "n") is None


class TestOtherProtocols:
    @pytest.mark.parametrize("protocol", ["trojan", "socks", "dokodemo-door", ""])
    def test_unsupported(self, protocol):
        assert build_share_link(make_inbound(protocol), "h", "U", "m", "n") is None


class TestClientBuildLink:
    def test_looks_up_inbound_and_uses_panel_host(self, client, panel):
        panel.on("GET", LIST_ROUTES[0], ok([inbound_entry(id=3, port=443, protocol="vless", stream=REALITY_WS)]))

        link = client.build_link(3, "U", "user_1", "Name")

        assert link.startswith("vless://U@panel.example.com:443?")

    def test_display_name_defaults_to_email(self, client, panel):
        panel.on("GET", LIST_ROUTES[0], ok([inbound_entry(id=3, protocol="vless")]))

        assert client.build_link(3, "U", "user_1").endswith("#user_1")

    def test_missing_inbound(self, client, panel):
        panel.on("GET", LIST_ROUTES[0], ok([]))

        assert client.build_link(3, "U", "user_1", "Name") is None

    def test_link_host_override(self, panel):
        endpoint = BackendEndpoint("https://panel.example.com:2053/", "admin", "secret", link_host="cdn.example.net")
        client = PanelClient(endpoint, requester=panel)
        inbound = make_inbound("vless", {"network": "tcp", "security": "tls"})

        assert client.build_link(inbound, "U", "m", "n") == "vless://U@cdn.example.net:443?type=tcp&security=tls#n"
        assert panel.requests == []
