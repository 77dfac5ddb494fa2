import httpx
import pytest

from conftest import auth_headers
from prompthive.core.exceptions import ScraperError
from prompthive.services import scraper_service

PAGE = """
<html><head><title>Prompt gallery</title></head><body>
  <h1>Gallery</h1>
  <h2>Email rewriter</h2>
  <p>Turns rough notes into a polite email.</p>
  <pre>Rewrite the following notes as an email: {{notes}}</pre>
  <h2>Tiny</h2>
  <pre>ignored, title too short</pre>
  <h2>Idea generator</h2>
  <p>Only a paragraph here.</p>
</body></html>
"""


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_headings_with_code_blocks_become_prompts():
    prompts = scraper_service.extract_prompts(PAGE, "https://example.com/gallery")

    titles = [p["title"] for p in prompts]
    assert "Tiny" not in titles
    email = next(p for p in prompts if p["title"] == "Email rewriter")
    assert email["content"] == "Rewrite the following notes as an email: {{notes}}"
    assert email["description"] == "Turns rough notes into a polite email."
    assert email["resource"] == "https://example.com/gallery"

    idea = next(p for p in prompts if p["title"] == "Idea generator")
    assert idea["content"] == "Only a paragraph here."


def test_page_without_sections_falls_back_to_whole_page():
    prompts = scraper_service.extract_prompts(
        "<html><head><title>Notes</title></head><body><div>just text</div></body></html>",
        "https://example.com/notes",
    )
    assert len(prompts) == 1
    assert prompts[0]["title"] == "Notes"
    assert prompts[0]["content"] == "just text"
    assert prompts[0]["description"] == "Table scraped from single page"


def test_scrape_fetches_with_user_agent():
    seen = {}

    def handler(request):
        seen["agent"] = request.headers["user-agent"]
        return httpx.Response(200, text=PAGE)

    with _client(handler) as client:
        prompts = scraper_service.scrape_url_for_prompts("https://example.com/gallery", client=client)

    assert seen["agent"] == "PromptHive-Scraper/1.0"
    assert prompts


def test_scrape_reports_http_errors():
    with _client(lambda request: httpx.Response(404)) as client:
        with pytest.raises(ScraperError, match="Failed to fetch URL: Not Found"):
            scraper_service.scrape_url_for_prompts("https://example.com/missing", client=client)


def test_scrape_wraps_transport_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(ScraperError, match="connection refused"):
            scraper_service.scrape_url_for_prompts("https://example.com", client=client)


def test_scrape_wraps_parse_errors(monkeypatch):
    def broken(html, url):
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

    monkeypatch.setattr(scraper_service, "extract_prompts", broken)
    with _client(lambda request: httpx.Response(200, text="<html></html>")) as client:
        with pytest.raises(ScraperError, match="Failed to scrape URL"):
            scraper_service.scrape_url_for_prompts("https://example.com", client=client)


def test_scrape_endpoint_requires_url(client, user):
    response = client.post("/api/v1/scraper", json={}, headers=auth_headers(user))
    assert response.status_code == 502
    assert response.json() == {"detail": "URL is required"}
