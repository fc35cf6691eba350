from __future__ import annotations

import httpx
from loguru import logger

from .config import (
    HTTP_CONNECT_TIMEOUT,
    HTTP_READ_TIMEOUT,
    HTTP_MAX_REDIRECTS,
    HTTP_MAX_BYTES,
    HTTP_USER_AGENT,
)

_HTML_TYPES = ("text/html", "application/xhtml+xml")


def _is_html(response: httpx.Response) -> bool:
    # Servers that send no content type get the benefit of the doubt.
    content_type = (response.headers.get("content-type") or "").lower()
    return not content_type or any(t in content_type for t in _HTML_TYPES)


def fetch_page_html(url: str) -> str | None:
    """
    Download a product listing page for annotation.

    Returns the decoded HTML, or None (with a warning logged) on HTTP
    errors, non-HTML bodies, bodies over HTTP_MAX_BYTES, timeouts and
    transport failures.  Redirects are followed up to HTTP_MAX_REDIRECTS.
    """
    request_headers = {"User-Agent": HTTP_USER_AGENT, "Accept": "text/html,application/xhtml+xml"}
    timeout = httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT)
    try:
        with httpx.Client(follow_redirects=True, timeout=timeout, max_redirects=HTTP_MAX_REDIRECTS) as client:
            page = client.get(url, headers=request_headers)
    except httpx.TimeoutException:
        logger.warning("Timed out fetching {}", url)
        return None
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("Could not fetch {}: {}", url, e)
        return None

    if page.status_code >= 400:
        logger.warning("Page fetch: HTTP {} for {}", page.status_code, url)
        return None
    if not _is_html(page):
        logger.warning("Not an HTML page ({}): {}", page.headers.get("content-type"), url)
        return None

    size = len(page.content)
    if size > HTTP_MAX_BYTES:
        logger.warning("Page too large: {} bytes > {} limit ({})", size, HTTP_MAX_BYTES, url)
        return None

    logger.debug("Fetched {} bytes from {}", size, url)
    return page.text or None
