import json
import os
import sys
import threading
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlsplit

import pytest
import requests

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from wp_migrator.models.wp_content import SiteConnection

SRC = "https://source.test"
DST = "https://dest.test"
SRC_API = f"{SRC}/wp-json/wp/v2"
DST_API = f"{DST}/wp-json/wp/v2"


def make_response(
    status: int = 200,
    json_body: Any = None,
    *,
    content: Optional[bytes] = None,
    headers: Optional[Dict[str, str]] = None,
    url: str = "",
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.reason = HTTPStatus(status).phrase
    resp.url = url
    if json_body is not None:
        resp._content = json.dumps(json_body).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
    else:
        resp._content = content if content is not None else b""
    resp.headers.update(headers or {})
    return resp


@dataclass
class Call:
    method: str
    url: str
    base: str
    query: Dict[str, str]
    headers: Dict[str, str] = field(default_factory=dict)
    json: Any = None
    files: Any = None


class FakeWordPress:
    """Routes ``requests.request`` calls to canned responses and records them."""

    def __init__(self) -> None:
        self.routes: List[tuple] = []
        self.calls: List[Call] = []
        self._lock = threading.Lock()

    def add(self, method: str, url: str, reply: Any, **query: str) -> None:
        """Register ``reply`` (a Response, an exception or a callable taking the Call)."""
        self.routes.insert(0, (method.upper(), url, {k: str(v) for k, v in query.items()}, reply))

    def __call__(self, method, url, headers=None, params=None, json=None, files=None, **kwargs):
        parts = urlsplit(url)
        base = f"{parts.scheme}://{parts.netloc}{parts.path}"
        query = dict(parse_qsl(parts.query, keep_blank_values=True))
        query.update({k: str(v) for k, v in (params or {}).items()})
        call = Call(method.upper(), url, base, query, dict(headers or {}), json, files)
        with self._lock:
            self.calls.append(call)
        for route_method, route_url, route_query, reply in self.routes:
            if route_method != call.method or route_url != base:
                continue
            if any(query.get(k) != v for k, v in route_query.items()):
                continue
            if isinstance(reply, BaseException):
                raise reply
            if callable(reply):
                return reply(call)
            return reply
        raise AssertionError(f"Unexpected request: {method} {url}")

    def calls_to(self, method: str, base: str) -> List[Call]:
        return [c for c in self.calls if c.method == method.upper() and c.base == base]


@pytest.fixture
def fake_wp(monkeypatch) -> FakeWordPress:
    fake = FakeWordPress()
    monkeypatch.setattr(requests, "request", fake)
    return fake


@pytest.fixture
def source() -> SiteConnection:
    return SiteConnection.from_credentials(SRC, "reader", "src pass", name="Source")


@pytest.fixture
def dest() -> SiteConnection:
    return SiteConnection.from_credentials(DST, "writer", "dst pass", name="Destination")


def make_item(
    item_id: int,
    *,
    title: str = "Hello",
    status: str = "publish",
    media: Optional[Dict[str, Any]] = None,
    terms: Optional[List[List[Dict[str, Any]]]] = None,
    parent: Optional[int] = None,
) -> Dict[str, Any]:
    embedded: Dict[str, Any] = {"author": [{"id": 1, "name": "Ana"}]}
    if media is not None:
        embedded["wp:featuredmedia"] = [media]
    if terms is not None:
        embedded["wp:term"] = terms
    data: Dict[str, Any] = {
        "id": item_id,
        "title": {"rendered": title},
        "content": {"rendered": f"<p>Body of {item_id}</p>", "protected": False},
        "status": status,
        "author": 1,
        "featured_media": media["id"] if media else 0,
        "categories": [],
        "tags": [],
        "_embedded": embedded,
    }
    if parent is not None:
        data["parent"] = parent
    return data


def make_media(media_id: int = 55, url: str = f"{SRC}/wp-content/uploads/2024/05/cat.jpg") -> Dict[str, Any]:
    return {
        "id": media_id,
        "source_url": url,
        "mime_type": "image/jpeg",
        "media_details": {"file": "2024/05/cat.jpg"},
    }


def category(slug: str, name: Optional[str] = None, term_id: int = 1) -> Dict[str, Any]:
    return {"id": term_id, "name": name or slug.title(), "slug": slug, "taxonomy": "category"}


def tag(slug: str, name: Optional[str] = None, term_id: int = 2) -> Dict[str, Any]:
    return {"id": term_id, "name": name or slug.title(), "slug": slug, "taxonomy": "post_tag"}


class TermStore:
    """Stateful destination taxonomy: lookups by slug and creation."""

    def __init__(self, fake: FakeWordPress, endpoint: str, start_id: int = 100) -> None:
        self.terms: List[Dict[str, Any]] = []
        self.next_id = start_id
        fake.add("GET", f"{DST_API}/{endpoint}", self.lookup)
        fake.add("POST", f"{DST_API}/{endpoint}", self.create)

    def lookup(self, call: Call) -> requests.Response:
        slug = call.query.get("slug")
        return make_response(200, [t for t in self.terms if t["slug"] == slug])

    def create(self, call: Call) -> requests.Response:
        term = {"id": self.next_id, "name": call.json["name"], "slug": call.json["slug"]}
        self.next_id += 1
        self.terms.append(term)
        return make_response(201, term)

