import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
import trafilatura
from bs4 import BeautifulSoup

from src.utils.config import (
    NEWS_SOURCES,
    FETCH_DELAY_SECONDS,
    HTTP_TIMEOUT,
    USER_AGENT,
    DEBUG
)

logger = logging.getLogger(__name__)


def _text_of(node, name: str) -> str:
    child = node.find(name)
    return child.get_text(strip=True) if child else ""


def parse_feed(xml: str) -> List[Dict[str, Any]]:
    """Parse RSS <item> or Atom <entry> elements into article stubs."""
    soup = BeautifulSoup(xml, "xml")
    articles = []
    for item in soup.find_all("item"):
        articles.append({
            "title": _text_of(item, "title"),
            "url": _text_of(item, "link"),
            "publishedAt": _text_of(item, "pubDate") or datetime.now(timezone.utc).isoformat(),
            "source": "rss",
        })
    for entry in soup.find_all("entry"):
        link = entry.find("link")
        articles.append({
            "title": _text_of(entry, "title"),
            "url": (link.get("href") or link.get_text(strip=True)) if link else "",
            "publishedAt": _text_of(entry, "published") or _text_of(entry, "updated")
                           or datetime.now(timezone.utc).isoformat(),
            "source": "atom",
        })
    return [a for a in articles if a["url"]]


def extract_content(html: str, url: str) -> Optional[Dict[str, Any]]:
    """Readable main text of an article page, or None if nothing could be extracted."""
    text = trafilatura.extract(
        html,
        url=url,
        include_comments=False,
        include_tables=False,
        include_images=False
    )
    if not text:
        return None

    soup = BeautifulSoup(html, "html.parser")
    title_tag = soup.find("title")
    return {
        "text": text,
        "title": title_tag.get_text().strip() if title_tag else "",
        "length": len(text),
    }


class NewsFetcher:
    """
    Pulls articles from RSS feeds and downloads their full text.

    Sources are walked one after another with a fixed pause after every
    article download.
    """

    def __init__(self, sources: Optional[List[Dict[str, str]]] = None,
                 client: Optional[httpx.AsyncClient] = None,
                 delay: float = FETCH_DELAY_SECONDS,
                 timeout: float = HTTP_TIMEOUT):
        self.sources = sources if sources is not None else NEWS_SOURCES
        self.client = client
        self.delay = delay
        self.timeout = timeout

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=self.timeout,
            follow_redirects=True,
        ) as client:
            yield client

    async def _fetch_feed(self, client: httpx.AsyncClient, url: str) -> List[Dict[str, Any]]:
        try:
            response = await client.get(url)
            response.raise_for_status()
            return parse_feed(response.text)
        except Exception as e:
            logger.error(f"Error fetching RSS feed {url}: {e}", exc_info=DEBUG)
            return []

    async def _extract_article(self, client: httpx.AsyncClient, url: str) -> Optional[Dict[str, Any]]:
        try:
            response = await client.get(url)
            response.raise_for_status()
            return extract_content(response.text, url)
        except Exception as e:
            logger.error(f"Error extracting content from {url}: {e}", exc_info=DEBUG)
            return None

    async def fetch_feed(self, url: str) -> List[Dict[str, Any]]:
        """Article stubs (title, url, publishedAt, source) listed in a feed."""
        async with self._session() as client:
            return await self._fetch_feed(client, url)

    async def extract_article(self, url: str) -> Optional[Dict[str, Any]]:
        async with self._session() as client:
            return await self._extract_article(client, url)

    async def fetch_news(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Up to ``limit`` articles with their full text, in source order."""
        all_articles: List[Dict[str, Any]] = []

        async with self._session() as client:
            for source in self.sources:
                if len(all_articles) >= limit:
                    break
                if source.get("type", "rss") != "rss":
                    logger.warning(f"Unsupported source type {source.get('type')} for {source.get('name')}")
                    continue

                articles = await self._fetch_feed(client, source["url"])
                logger.info(f"{source.get('name', source['url'])}: {len(articles)} feed items")

                for article in articles:
                    if len(all_articles) >= limit:
                        break
                    content = await self._extract_article(client, article["url"])
                    if content:
                        all_articles.append({
                            **article,
                            "title": article["title"] or content["title"],
                            "text": f"{content['title']}\n\n{content['text']}",
                            "contentLength": content["length"],
                        })
                    # Small delay to avoid being blocked
                    await asyncio.sleep(self.delay)

        logger.info(f"Fetched {len(all_articles)} articles")
        return all_articles
