"""Tests for API functionality."""

import pytest
from fastapi.testclient import TestClient

from olio.api.app import create_app, generate_token
from olio.core.model import HelpArticle
from olio.runtime import build_runtime


@pytest.fixture
def runtime(tmp_path, monkeypatch):
    """Create a runtime with a test library."""
    monkeypatch.chdir(tmp_path)
    rt = build_runtime(library_path=tmp_path / "help")
    rt.library.put(
        HelpArticle(
            id="a1",
            title="Setup Guide",
            slug="setup-guide",
            content="# Setup\n\nRead [more](olio://help/a2) or [jump](olio://help-anchor/setup).\n",
        )
    )
    rt.library.put(HelpArticle(id="a2", title="Draft", slug="draft", content="x", published=False))
    return rt


@pytest.fixture
def client(runtime):
    return TestClient(create_app(runtime, token=None))


def test_health_endpoint(client):
    """Test /health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_auth_required(runtime):
    """Test that endpoints require authentication when token is set."""
    token = generate_token()
    client = TestClient(create_app(runtime, token=token))

    assert client.get("/health").status_code == 401
    assert client.get("/health", headers={"Authorization": "Bearer wrong"}).status_code == 401

    response = client.get("/health", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_list_articles(client):
    """Test listing with and without unpublished articles."""
    assert [a["id"] for a in client.get("/articles").json()] == ["a1", "a2"]
    assert [a["id"] for a in client.get("/articles", params={"published": True}).json()] == ["a1"]


def test_get_article(client):
    """Test article fetch and 404."""
    data = client.get("/articles/a1").json()
    assert data["title"] == "Setup Guide"
    assert data["content"].startswith("# Setup")

    assert client.get("/articles/missing").status_code == 404


def test_article_document(client):
    """Test the parsed block tree."""
    data = client.get("/articles/a1/document").json()
    assert data["blocks"][0] == {"kind": "heading", "level": 1, "text": "Setup", "anchor_id": "setup"}
    assert data["blocks"][1]["kind"] == "paragraph"
    assert data["anchors"] == [{"id": "setup", "title": "Setup", "level": 1}]


def test_article_html(client):
    """Test rendered HTML resolves anchors against the article."""
    response = client.get("/articles/a1/html")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert '<h1 id="setup">Setup</h1>' in response.text
    assert '<a href="#setup"' in response.text


def test_article_lint(client):
    """Test lint findings for an article (a2 is unpublished)."""
    findings = client.get("/articles/a1/lint").json()
    assert [f["severity"] for f in findings] == ["error"]


def test_parse_endpoint(client):
    """Test POST /parse."""
    data = client.post("/parse", json={"content": "- [x] done\n"}).json()
    assert data["blocks"] == [{"kind": "task_list", "items": [{"checked": True, "text": "done"}]}]


def test_links_endpoint(client):
    """Test POST /links segments content."""
    segments = client.post("/links", json={"content": "a [b](olio://help/x) c"}).json()
    assert [s["kind"] for s in segments] == ["text", "link", "text"]
    target = segments[1]["link"]["target"]
    assert target["type"] == "help"
    assert target["article_id"] == "x"
    assert target["href"] == "olio://help/x"


def test_link_at_endpoint(client):
    """Test POST /links/at."""
    content = "a [b](olio://project/p/planner/t) c"
    data = client.post("/links/at", json={"content": content, "offset": 3}).json()
    assert data["label"] == "b"
    assert data["target"]["kind"] == "planner_item"

    assert client.post("/links/at", json={"content": content, "offset": 0}).status_code == 404


def test_insert_endpoint(client):
    """Test POST /links/insert."""
    body = {"content": "see docs", "start": 4, "end": 8, "target": "docs.example.com"}
    data = client.post("/links/insert", json=body).json()
    assert data["content"] == "see [docs](https://docs.example.com)"
    assert data["cursor"] == len(data["content"])

    bad = dict(body, target="olio://nowhere/x")
    assert client.post("/links/insert", json=bad).status_code == 400

    outside = dict(body, end=99)
    assert client.post("/links/insert", json=outside).status_code == 400


def test_remove_and_edit_endpoints(client):
    """Test POST /links/remove and /links/edit."""
    content = "x [y](https://y.example) z"
    removed = client.post("/links/remove", json={"content": content, "offset": 3}).json()
    assert removed["content"] == "x y z"

    edited = client.post(
        "/links/edit", json={"content": content, "offset": 3, "target": "olio://help/h1"}
    ).json()
    assert edited["content"] == "x [y](olio://help/h1) z"


def test_negative_offset_rejected(client):
    """Test request validation."""
    response = client.post("/links/at", json={"content": "x", "offset": -1})
    assert response.status_code == 422


def test_insert_empty_label_rejected(client):
    """Test inserting with no usable label is a bad request."""
    body = {"content": "See ", "start": 4, "end": 4, "target": "example.com", "label": " "}
    response = client.post("/links/insert", json=body)
    assert response.status_code == 400
    assert "empty" in response.json()["detail"]
