"""Turns caller-supplied competitor URLs into search-result shaped records."""
from __future__ import annotations

import asyncio
import re
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from app.config import Settings
from app.errors import SearchProviderError
from app.models.schemas import SearchResult

USER_AGENT = "Mozilla/5.0 (compatible; ContentScope/0.1; +https://contentscope.app)"
SKIPPED_TAGS = ("script", "style", "noscript", "nav", "header", "footer", "form", "svg")


def is_valid_url(url: str) -> bool:
    """Only absolute http(s) URLs are accepted."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def extract_domain(url: str) -> str:
    return urlparse(url).netloc or url


def _normalize_text(text: str) -> str:
    text = text.replace("\xa0", " ")
    return re.sub(r"\s+", " ", text).strip()


def _truncate(text: str, max_chars: int) -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + "..."


def parse_page(url: str, html: str, *, snippet_chars: int) -> SearchResult:
    soup = BeautifulSoup(html, "html.parser")

    title = _normalize_text(soup.title.string) if soup.title and soup.title.string else ""
    if not title:
        h1 = soup.find("h1")
        title = _normalize_text(h1.get_text(" ")) if h1 else ""

    description = ""
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        meta = soup.find("meta", attrs=attrs)
        if meta and meta.get("content"):
            description = _normalize_text(meta["content"])
            break

    for tag in soup(SKIPPED_TAGS):
        tag.decompose()
    headings = [_normalize_text(h.get_text(" ")) for h in soup.find_all(["h1", "h2", "h3"])]
    paragraphs = [_normalize_text(p.get_text(" ")) for p in soup.find_all("p")]
    body = " ".join(part for part in headings + paragraphs if part)

    snippet = f"{description}\n{body}" if description else body
    return SearchResult(
        title=title or extract_domain(url),
        snippet=_truncate(snippet.strip(), snippet_chars),
        link=url,
        result_type="organic",
    )


class PageFetcher:
    def __init__(self, config: Settings):
        self.config = config

    async def fetch_page(self, url: str, client: httpx.AsyncClient | None = None) -> SearchResult:
        if not is_valid_url(url):
            raise ValueError(f"Invalid URL: {url!r}")

        async def _get(active: httpx.AsyncClient) -> httpx.Response:
            response = await active.get(url, headers={"User-Agent": USER_AGENT}, follow_redirects=True)
            response.raise_for_status()
            return response

        try:
            if client is not None:
                response = await _get(client)
            else:
                async with httpx.AsyncClient(timeout=self.config.http_timeout_seconds) as own:
                    response = await _get(own)
        except httpx.HTTPError as e:
            raise SearchProviderError(f"Failed to fetch {url}: {e}") from e

        return parse_page(url, response.text, snippet_chars=self.config.page_snippet_chars)

    async def fetch_pages(self, urls: list[str]) -> list[SearchResult]:
        async with httpx.AsyncClient(timeout=self.config.http_timeout_seconds) as client:
            pages = await asyncio.gather(*(self.fetch_page(url, client) for url in urls))
        return [page.model_copy(update={"position": rank}) for rank, page in enumerate(pages, start=1)]
