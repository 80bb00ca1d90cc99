"""
Fetch URL API

Downloads a web page and extracts its title and readable text so it can be
attached to a goal or routine as a reference source.
"""

import asyncio
import logging
import re
from typing import Optional, Tuple
from urllib.parse import urlparse

import requests
from fastapi import APIRouter, Request
from pydantic import ValidationError
from scrapy import Selector

from app.libs.errors import InvalidRequestError, UnexpectedError, error_response
from app.libs.models import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Sources"])

FETCH_TIMEOUT = 10
MAX_CONTENT_LENGTH = 10000
MIN_MAIN_CONTENT_LENGTH = 100
USER_AGENT = "Mozilla/5.0 (compatible; RoutineManagerBot/1.0)"

# Tried in order; the first with enough text wins
MAIN_CONTENT_SELECTORS = (
    "main",
    "article",
    "div[class*='content'], div[id*='content']",
)

_VISIBLE_TEXT = ".//text()[not(ancestor::script) and not(ancestor::style) and not(ancestor::noscript)]"
_WHITESPACE = re.compile(r"\s+")


class FetchUrlRequest(CamelModel):
    url: str


def parse_url(value: str) -> Optional[str]:
    """Return the URL when it is absolute http(s), else None."""
    parsed = urlparse(value.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return value.strip()


def visible_text(node: Selector) -> str:
    return _WHITESPACE.sub(" ", " ".join(node.xpath(_VISIBLE_TEXT).getall())).strip()


def extract_page(html: str, fallback_title: str) -> Tuple[str, str]:
    """
    Title and main text of an HTML page.

    Args:
        html: Raw page markup
        fallback_title: Used when the page has no <title>

    Returns:
        (title, content) with content capped at MAX_CONTENT_LENGTH characters
    """
    selector = Selector(text=html)

    title = (selector.css("title::text").get() or "").strip() or fallback_title

    content = ""
    for css in MAIN_CONTENT_SELECTORS:
        node = selector.css(css)
        if not node:
            continue
        text = visible_text(node[0])
        if len(text) > MIN_MAIN_CONTENT_LENGTH:
            content = text
            break

    if not content:
        content = visible_text(selector)

    return title, content[:MAX_CONTENT_LENGTH]


@router.post("/fetch-url")
async def fetch_url(request: Request):
    """
    Fetch a page and return {"title", "content"}

    Non-HTML responses return the hostname as title and a placeholder content.
    """
    try:
        payload = FetchUrlRequest.model_validate(await request.json())
    except (ValueError, ValidationError):  # malformed JSON or undecodable bytes
        return error_response(InvalidRequestError("URL is required"))

    url = parse_url(payload.url)
    if not url:
        return error_response(InvalidRequestError("Invalid URL"))
    hostname = urlparse(url).hostname or url

    try:
        response = await asyncio.to_thread(
            requests.get, url, headers={"User-Agent": USER_AGENT}, timeout=FETCH_TIMEOUT
        )
    except requests.RequestException as e:
        logger.warning("Fetching %s failed: %s", url, e)
        return error_response(UnexpectedError("Failed to fetch URL"))

    if not response.ok:
        return error_response(InvalidRequestError(f"Failed to fetch URL: {response.status_code}"))

    try:
        content_type = response.headers.get("content-type", "")
        if "text/html" not in content_type:
            return {
                "success": True,
                "data": {"title": hostname, "content": f"[Non-HTML content: {content_type or 'unknown'}]"},
            }

        title, content = extract_page(response.text, hostname)
        return {"success": True, "data": {"title": title, "content": content}}
    except Exception:
        logger.exception("Failed to extract content from %s", url)
        return error_response(UnexpectedError("Failed to fetch URL"))
