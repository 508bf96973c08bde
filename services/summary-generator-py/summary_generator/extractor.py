import re
import time
from typing import Callable, Optional, Sequence, Tuple, Union

import httpx
from bs4 import BeautifulSoup, FeatureNotFound
from charset_normalizer import from_bytes

from .errors import FetchError
from .logging import JsonLogger


# Non-content regions dropped before any text is read, wherever they are nested.
REMOVED_TAGS = ["script", "style", "nav", "footer", "header"]

_WS_RE = re.compile(r"\s+")

Selector = Callable[[BeautifulSoup], Optional[str]]


def _first_text(tag_name: str) -> Selector:
    def select(soup: BeautifulSoup) -> Optional[str]:
        node = soup.find(tag_name)
        if node is None:
            return None
        return node.get_text()
    return select


# Ordered fallback chain; first non-empty result wins.
DEFAULT_SELECTORS: Tuple[Tuple[str, Selector], ...] = (
    ("main", _first_text("main")),
    ("article", _first_text("article")),
    ("body", _first_text("body")),
)


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run to one space and trim the ends."""
    return _WS_RE.sub(" ", text or "").strip()


def decode_body(body: Union[bytes, bytearray, str], declared: Optional[str] = None) -> str:
    if not isinstance(body, (bytes, bytearray)):
        return str(body)
    if declared:
        try:
            return bytes(body).decode(declared)
        except (LookupError, UnicodeDecodeError):
            pass
    res = from_bytes(bytes(body)).best()
    if res is None:
        return bytes(body).decode("utf-8", errors="ignore")
    return str(res)


def parse_html(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except FeatureNotFound:
        return BeautifulSoup(html, "html.parser")


def extract_text(html: str, selectors: Sequence[Tuple[str, Selector]] = DEFAULT_SELECTORS) -> Tuple[str, Optional[str]]:
    """Reduce an HTML document to normalized prose.

    Returns ``(text, selector_name)``; ``selector_name`` is None when no
    selector produced text, in which case ``text`` is empty.
    """
    soup = parse_html(html)
    for tag in soup(REMOVED_TAGS):
        tag.extract()
    for name, select in selectors:
        text = normalize_whitespace(select(soup) or "")
        if text:
            return text, name
    return "", None


class ContentExtractor:
    """Fetches a page and reduces it to plain, whitespace-normalized text."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        logger: JsonLogger,
        selectors: Sequence[Tuple[str, Selector]] = DEFAULT_SELECTORS,
    ) -> None:
        self._client = client
        self._logger = logger
        self._selectors = tuple(selectors)

    async def fetch(self, url: str, logger: Optional[JsonLogger] = None) -> str:
        log = logger or self._logger
        t0 = time.time()
        log.info("extract.fetch.start", url=url)
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error("extract.fetch.failed", url=url, status=e.response.status_code, error=str(e))
            raise FetchError("Failed to fetch URL content") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # DNS/refused/TLS/timeout, or a url httpx cannot parse
            log.error("extract.fetch.failed", url=url, error_type=e.__class__.__name__, error=str(e))
            raise FetchError("Failed to fetch URL content") from e

        body = resp.content
        log.info(
            "extract.fetch.done",
            url=url,
            final_url=str(resp.url),
            status=resp.status_code,
            bytes=len(body),
            latency_ms=int((time.time() - t0) * 1000),
            content_type=resp.headers.get("content-type", ""),
        )
        return decode_body(body, resp.charset_encoding)

    async def extract(self, url: str, logger: Optional[JsonLogger] = None) -> str:
        log = logger or self._logger
        html = await self.fetch(url, logger=log)
        text, used = extract_text(html, self._selectors)
        log.debug("extract.done", url=url, html_size=len(html), content_length=len(text), selector=used)
        return text
