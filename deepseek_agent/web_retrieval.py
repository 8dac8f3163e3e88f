# deepseek_agent/web_retrieval.py
import logging
from typing import List, Optional
from urllib.parse import parse_qs, quote, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from deepseek_agent.data_models import SearchResult
from deepseek_agent.errors import HtmlExtractionAmbiguous, NetworkError, SearchBlockedError

SEARCH_ENDPOINT = "https://html.duckduckgo.com/html/?q="

# The search endpoint rejects clients it does not recognise as a browser.
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

BLOCKED_MARKERS = (
    "captcha",
    "unusual traffic",
    "verify you are human",
    "are you a robot",
    "too many requests",
    "rate limit",
)
NO_RESULTS_MARKERS = ("no results.", "no results found", "no more results")

MAX_SEARCH_RESULTS = 10

logger = logging.getLogger(__name__)


def _make_client(timeout: Optional[float]) -> httpx.Client:
    return httpx.Client(follow_redirects=True, timeout=httpx.Timeout(timeout))


def _looks_blocked(body: str) -> bool:
    lowered = body.lower()
    return any(marker in lowered for marker in BLOCKED_MARKERS)


def _get(client: httpx.Client, url: str, headers: Optional[dict] = None) -> httpx.Response:
    try:
        return client.get(url, headers=headers)
    except httpx.HTTPError as e:
        raise NetworkError(url, reason=str(e) or e.__class__.__name__) from e


def fetch_url(url: str, client: Optional[httpx.Client] = None, timeout: Optional[float] = None) -> str:
    """GETs `url` and returns the raw body text, whatever its content type."""
    url = url.strip()
    if not url:
        raise ValueError("No URL given.")
    owns_client = client is None
    client = client or _make_client(timeout)
    try:
        response = _get(client, url, headers=BROWSER_HEADERS)
        if not response.is_success:
            if _looks_blocked(response.text):
                raise SearchBlockedError(url, response.status_code)
            raise NetworkError(url, status=response.status_code, reason=response.reason_phrase)
        return response.text
    finally:
        if owns_client:
            client.close()


def _unwrap_result_url(href: str, base_url: str) -> str:
    absolute = urljoin(base_url, href)
    parsed = urlparse(absolute)
    # DuckDuckGo wraps result links in a redirect: /l/?uddg=<target>
    target = parse_qs(parsed.query).get("uddg")
    if target:
        return target[0]
    return absolute


def extract_search_results(html: str, base_url: str, max_results: int = MAX_SEARCH_RESULTS) -> List[SearchResult]:
    soup = BeautifulSoup(html, "html.parser")
    results: List[SearchResult] = []
    for block in soup.select(".result"):
        link = block.select_one("a.result__a")
        if link is None:
            continue
        title = link.get_text(" ", strip=True)
        href = link.get("href")
        if not title or not href:
            continue
        snippet_el = block.select_one(".result__snippet")
        snippet = snippet_el.get_text(" ", strip=True) if snippet_el else ""
        results.append(SearchResult(title=title, url=_unwrap_result_url(href, base_url), snippet=snippet))
        if len(results) >= max_results:
            break
    return results


def format_search_results(query: str, results: List[SearchResult]) -> str:
    output = f"Search results for: {query}\n"
    for i, result in enumerate(results, 1):
        output += f"\n{i}. {result.title}\n   {result.url}\n"
        if result.snippet:
            output += f"   {result.snippet}\n"
    return output.rstrip("\n")


def web_search(
    query: str,
    client: Optional[httpx.Client] = None,
    timeout: Optional[float] = None,
    max_results: int = MAX_SEARCH_RESULTS,
) -> str:
    query = query.strip()
    if not query:
        raise ValueError("No search query given.")
    url = SEARCH_ENDPOINT + quote(query, safe="")
    owns_client = client is None
    client = client or _make_client(timeout)
    try:
        response = _get(client, url, headers=BROWSER_HEADERS)
    finally:
        if owns_client:
            client.close()

    body = response.text
    has_result_links = "result__a" in body
    if _looks_blocked(body) and not has_result_links:
        raise SearchBlockedError(url, response.status_code)
    if not response.is_success:
        raise NetworkError(url, status=response.status_code, reason=response.reason_phrase)

    results = extract_search_results(body, str(response.url), max_results=max_results)
    if results:
        return format_search_results(query, results)

    page_text = BeautifulSoup(body, "html.parser").get_text(" ", strip=True).lower()
    if any(marker in page_text for marker in NO_RESULTS_MARKERS):
        return f'No results found for "{query}".'
    logger.debug("Search page for %r had no recognisable result blocks", query)
    raise HtmlExtractionAmbiguous(url)
