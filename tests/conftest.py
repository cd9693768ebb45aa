"""Pytest shared fixtures: an in-memory Kanidm API behind a fake session."""
import itertools
import json
import pathlib
import sys
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlsplit

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from kanidm_provider.config.settings import ClientSettings
from kanidm_provider.core.kanidm import KanidmClient

BASE_URL = "https://idm.example.com"
TOKEN = "test-token"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_real_http(monkeypatch, request):
    """
    Prevent unit tests from reaching a live server.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _no_network(self, method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests.Session, "request", _no_network)


# ─────────────────────────────────────────────────────────────────────────────
# Fake Kanidm server
# ─────────────────────────────────────────────────────────────────────────────
class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None, url: str = ""):
        self.status_code = status_code
        self.url = url
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.content = text.encode("utf-8")
        self.closed = False

    def close(self):
        self.closed = True


@dataclass
class Call:
    method: str
    path: str
    body: Any
    headers: dict
    raw: bytes
    timeout: Any
    verify: Any = True


class FakeKanidmSession:
    """In-memory stand-in for requests.Session speaking the Kanidm v1 API.

    Stores entries per kind, issues secrets and tokens from counters and
    records every call. ``fail()`` forces the next matching call to return
    a given status.
    """

    KINDS = ("person", "service_account", "group", "oauth2")

    def __init__(self):
        self.entries = {kind: {} for kind in self.KINDS}
        self.secrets: dict[str, str] = {}
        self.scope_maps: dict[str, dict[str, list]] = {}
        self.passwords: dict[str, str] = {}
        self.calls: list[Call] = []
        self.responses: list[FakeResponse] = []
        self._overrides: list[tuple[str, str, FakeResponse]] = []
        self._counter = itertools.count(1)

    # Test helpers -----------------------------------------------------------
    def fail(self, method: str, path: str, status: int, text: str = "") -> None:
        """Answer the next matching call with a canned status and body."""
        self._overrides.append((method, path, FakeResponse(status, text=text)))

    def seed(self, kind: str, name: str, attrs: dict) -> None:
        self.entries[kind][name] = attrs

    def calls_to(self, method: str, path: str) -> list[Call]:
        return [c for c in self.calls if c.method == method and c.path == path]

    # requests.Session interface ---------------------------------------------
    def request(self, method, url, data=None, headers=None, timeout=None, verify=True):
        path = urlsplit(url).path
        body = json.loads(data) if data else None
        self.calls.append(Call(method, path, body, dict(headers or {}), data, timeout, verify))

        resp = None
        for idx, (o_method, o_path, o_resp) in enumerate(self._overrides):
            if o_method == method and o_path == path:
                resp = self._overrides.pop(idx)[2]
                break
        if resp is None:
            resp = self._dispatch(method, path, body)
        resp.url = url
        self.responses.append(resp)
        return resp

    def close(self):
        pass

    # Routing ------------------------------------------------------------------
    def _next_secret(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter):04d}"

    def _dispatch(self, method, path, body):
        parts = [p for p in path.split("/") if p][1:]  # drop "v1"
        if not parts or parts[0] not in self.KINDS:
            return FakeResponse(404)
        kind, rest = parts[0], parts[1:]
        store = self.entries[kind]

        if kind == "oauth2" and method == "POST" and rest in (["_basic"], ["_public"]):
            return self._create_oauth2(rest[0], body)
        if not rest:
            if method == "POST":
                return self._create(kind, body)
            return FakeResponse(405)

        name, sub = rest[0], rest[1:]
        if name not in store:
            return FakeResponse(404)
        attrs = store[name]

        if not sub:
            if method == "GET":
                return FakeResponse(200, {"attrs": attrs})
            if method == "PATCH":
                for key, value in body["attrs"].items():
                    if key == "oauth2_rs_origin":
                        value = [v.rstrip("/") + "/" for v in value]
                    attrs[key] = value
                return FakeResponse(200, None, text="null")
            if method == "DELETE":
                del store[name]
                return FakeResponse(200, None, text="null")
        if kind == "person" and sub[:2] == ["_credential", "_update_intent"]:
            if method == "POST":
                self.passwords[name] = body["password"]
                return FakeResponse(200, None, text="null")
            ttl = sub[2] if len(sub) > 2 else "default"
            return FakeResponse(200, {"token": f"reset-{name}-{ttl}", "expiry_time": 1700000000})
        if kind == "service_account" and sub == ["_api_token"] and method == "POST":
            return FakeResponse(200, {"token": self._next_secret(f"api-{body['label']}")})
        if kind == "group" and sub == ["_attr", "member"]:
            members = attrs.setdefault("member", [])
            if method == "POST":
                members.extend(m for m in body["attrs"] if m not in members)
            elif method == "DELETE":
                attrs["member"] = [m for m in members if m not in body["attrs"]]
            return FakeResponse(200, None, text="null")
        if kind == "oauth2" and sub == ["_basic_secret"]:
            if name not in self.secrets:
                return FakeResponse(400, text="client is not a basic client")
            if method == "POST":
                self.secrets[name] = self._next_secret("secret")
            return FakeResponse(200, self.secrets[name])
        if kind == "oauth2" and len(sub) == 2 and sub[0] == "_scopemap":
            maps = self.scope_maps.setdefault(name, {})
            if method == "POST":
                maps[sub[1]] = body
            elif method == "DELETE":
                if sub[1] not in maps:
                    return FakeResponse(404)
                del maps[sub[1]]
            return FakeResponse(200, None, text="null")
        return FakeResponse(404)

    def _create(self, kind, body):
        attrs = {key: list(value) for key, value in body["attrs"].items()}
        name = attrs["name"][0]
        if name in self.entries[kind]:
            return FakeResponse(409, text=f"entry '{name}' already exists")
        self.entries[kind][name] = attrs
        return FakeResponse(200, None, text="null")

    def _create_oauth2(self, variant, body):
        attrs = {key: list(value) for key, value in body["attrs"].items()}
        name = attrs["name"][0]
        if name in self.entries["oauth2"]:
            return FakeResponse(409, text=f"entry '{name}' already exists")
        attrs["oauth2_rs_name"] = [name]
        if variant == "_basic":
            # Key present, value hidden
            attrs["oauth2_rs_basic_secret"] = []
            self.secrets[name] = self._next_secret("secret")
        self.entries["oauth2"][name] = attrs
        return FakeResponse(200, None, text="null")


@pytest.fixture()
def fake_kanidm():
    """Fresh in-memory Kanidm server."""
    return FakeKanidmSession()


@pytest.fixture()
def kanidm_client(fake_kanidm):
    """KanidmClient wired to the in-memory server."""
    return KanidmClient(ClientSettings(base_url=BASE_URL + "/", token=TOKEN, timeout=5, session=fake_kanidm))
