"""Pull prompt candidates out of a public web page.

Headings (``h1``-``h3``) open a candidate; code-like blocks that follow it
become the content and the first paragraph its description.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from bs4 import BeautifulSoup, Tag

from prompthive.core.config import settings
from prompthive.core.exceptions import ScraperError
from prompthive.core.messages import SCRAPER_FAILED, SCRAPER_URL_REQUIRED

logger = logging.getLogger("prompthive.services.scraper")

HEADINGS = ("h1", "h2", "h3")
CONTENT_TAGS = ("pre", "code", "blockquote")
MAX_RESULTS = 50
FALLBACK_TITLE = "Scraped Prompt"
FALLBACK_DESCRIPTION = "Table scraped from single page"


def _candidate(title: str, content: str, description: str, url: str) -> dict[str, Any]:
    return {"title": title, "content": content, "description": description, "tags": [], "resource": url}


def _scan_section(heading: Tag) -> tuple[str, str]:
    """Content and description collected from the siblings below a heading."""
    level = int(heading.name[1])
    content = ""
    description = ""
    for sibling in heading.find_next_siblings():
        if sibling.name in HEADINGS and int(sibling.name[1]) <= level:
            break
        if sibling.name in CONTENT_TAGS:
            content += sibling.get_text().strip() + "\n\n"
        elif sibling.name == "p" and not description and not content:
            description = sibling.get_text().strip()
    return content, description


def extract_prompts(html: str, url: str) -> list[dict[str, Any]]:
    soup = BeautifulSoup(html, "html.parser")
    prompts: list[dict[str, Any]] = []

    for heading in soup.find_all(HEADINGS):
        title = heading.get_text().strip()
        if len(title) < 5 or len(title) > 200:
            continue
        content, description = _scan_section(heading)
        if content.strip():
            prompts.append(_candidate(title, content.strip(), description[:200], url))
        elif description.strip():
            prompts.append(_candidate(title, description.strip(), "", url))

    if not prompts:
        title = soup.title.get_text().strip() if soup.title and soup.title.get_text().strip() else FALLBACK_TITLE
        block = soup.find(CONTENT_TAGS)
        main = soup.find(["main", "article", "body"])
        text = block.get_text() if block is not None else ""
        if not text:
            text = (main.get_text() if main is not None else soup.get_text())[:2000]
        prompts.append(_candidate(title, text, FALLBACK_DESCRIPTION, url))

    return prompts[:MAX_RESULTS]


def scrape_url_for_prompts(url: Optional[str], client: Optional[httpx.Client] = None) -> list[dict[str, Any]]:
    if not url:
        raise ScraperError(SCRAPER_URL_REQUIRED)

    owns_client = client is None
    http = client or httpx.Client(timeout=settings.SCRAPER_TIMEOUT, follow_redirects=True)
    try:
        response = http.get(url, headers={"User-Agent": settings.SCRAPER_USER_AGENT})
        if response.is_error:
            raise ScraperError(f"Failed to fetch URL: {response.reason_phrase}")
        return extract_prompts(response.text, url)
    except ScraperError:
        raise
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.error("Scraping error for %s: %s", url, exc)
        raise ScraperError(str(exc) or SCRAPER_FAILED) from exc
    except Exception as exc:
        logger.exception("Could not parse %s", url)
        raise ScraperError(SCRAPER_FAILED) from exc
    finally:
        if owns_client:
            http.close()
