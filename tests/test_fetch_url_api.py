import requests

from app.apis import fetch_url as fetch_url_api
from conftest import FakeResponse

ARTICLE = "Consistent habits compound over time. " * 5

HTML_PAGE = f"""
<html>
  <head><title>Habits &amp; Routines</title><style>.x {{ color: red }}</style></head>
  <body>
    <nav>Home About</nav>
    <main>
      <h1>Build better habits</h1>
      <script>trackPageView()</script>
      <!-- hidden comment -->
      <p>{ARTICLE}</p>
    </main>
    <footer>Copyright</footer>
  </body>
</html>
"""


def html_response(html, status_code=200):
    return FakeResponse(status_code=status_code, text=html, headers={"content-type": "text/html; charset=utf-8"})


def test_extracts_title_and_main_content(client, monkeypatch):
    requested = {}

    def fake_get(url, headers=None, timeout=None):
        requested.update(url=url, timeout=timeout)
        return html_response(HTML_PAGE)

    monkeypatch.setattr(requests, "get", fake_get)
    resp = client.post("/api/fetch-url", json={"url": "https://example.com/habits"})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["title"] == "Habits & Routines"
    assert data["content"].startswith("Build better habits Consistent habits")
    assert "trackPageView" not in data["content"]
    assert "hidden comment" not in data["content"]
    assert "Copyright" not in data["content"]
    assert requested == {"url": "https://example.com/habits", "timeout": 10}


def test_short_main_falls_back_to_whole_page(client, monkeypatch):
    page = "<html><body><main>Tiny</main><div>Other text</div><script>x()</script></body></html>"
    monkeypatch.setattr(requests, "get", lambda *a, **k: html_response(page))

    data = client.post("/api/fetch-url", json={"url": "https://example.com"}).json()["data"]
    assert data["title"] == "example.com"
    assert data["content"] == "Tiny Other text"


def test_content_is_capped(client, monkeypatch):
    page = f"<html><body><article>{'word ' * 5000}</article></body></html>"
    monkeypatch.setattr(requests, "get", lambda *a, **k: html_response(page))

    data = client.post("/api/fetch-url", json={"url": "https://example.com"}).json()["data"]
    assert len(data["content"]) == fetch_url_api.MAX_CONTENT_LENGTH


def test_non_html_content(client, monkeypatch):
    monkeypatch.setattr(
        requests, "get", lambda *a, **k: FakeResponse(text="%PDF", headers={"content-type": "application/pdf"})
    )
    resp = client.post("/api/fetch-url", json={"url": "https://docs.example.com/guide.pdf"})
    assert resp.json()["data"] == {"title": "docs.example.com", "content": "[Non-HTML content: application/pdf]"}


def test_invalid_requests(client, monkeypatch):
    assert client.post("/api/fetch-url", json={}).status_code == 400
    assert client.post("/api/fetch-url", json={"url": "not a url"}).status_code == 400
    assert client.post("/api/fetch-url", json={"url": "ftp://example.com/file"}).status_code == 400

    monkeypatch.setattr(requests, "get", lambda *a, **k: html_response("", status_code=404))
    resp = client.post("/api/fetch-url", json={"url": "https://example.com/missing"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Failed to fetch URL: 404"


def test_undecodable_body_returns_400(client):
    resp = client.post("/api/fetch-url", content=b'{"url":"\xff"}', headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False
