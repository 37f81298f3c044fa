from typing import Optional

import pytest
import requests

from content.document import PageDocument
from models import PageContext, SiteDescriptor
from storage.catalog import CriterionCatalog, seed_default_catalog
from storage.db import init_db, make_engine
from storage.results import ResultStore

SITE = SiteDescriptor(domain="acme.com", homepage_url="https://acme.com/", target_locale="en")


def html_page(head: str = "", body: str = "", lang: str = "en") -> str:
    lang_attr = f' lang="{lang}"' if lang else ""
    return f"<!DOCTYPE html><html{lang_attr}><head>{head}</head><body>{body}</body></html>"


def make_doc(html: str, url: str = "https://acme.com/", site: SiteDescriptor = SITE) -> PageDocument:
    return PageDocument(url=url, site=site, html=html)


def make_page(page_id: str, url: str, html: Optional[str], site: SiteDescriptor = SITE) -> PageContext:
    return PageContext(page_id=page_id, url=url, site=site, html_rendered=html)


def fake_response(url: str, body, status: int = 200, content_type: str = "text/plain") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.url = url
    resp._content = body if isinstance(body, bytes) else body.encode("utf-8")
    resp.headers["content-type"] = content_type
    resp.encoding = "utf-8"
    return resp


class FakeSession:
    """Offline stand-in for requests.Session: serves canned responses by URL."""

    def __init__(self, responses: Optional[dict] = None, fail: bool = False) -> None:
        self.responses = responses or {}
        self.fail = fail
        self.calls: list[str] = []
        self.closed = False

    def get(self, url, timeout=None, allow_redirects=True):
        self.calls.append(url)
        if self.fail:
            raise requests.exceptions.ConnectionError(f"offline: {url}")
        entry = self.responses.get(url)
        if entry is None:
            return fake_response(url, "not found", status=404, content_type="text/html")
        body, content_type = entry
        return fake_response(url, body, content_type=content_type)

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args) -> None:
        self.close()


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'diagnostics.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def catalog(engine):
    seed_default_catalog(engine)
    return CriterionCatalog(engine)


@pytest.fixture
def store(engine):
    return ResultStore(engine)


@pytest.fixture
def offline_session():
    return FakeSession(fail=True)
