"""Web page extraction using httpx and BeautifulSoup.

Fetches a single public URL (no link following), picks a title from a
prioritized list of candidates and the main content from a list of
container selectors, then cleans the text. Network and parser failures are
mapped onto the typed errors in doculink.errors.
"""

import asyncio
import ipaddress
import logging
from collections.abc import Callable
from urllib.parse import urlsplit

import httpx
from bs4 import BeautifulSoup, Tag

from doculink.errors import DocuLinkError, ProcessingError, ValidationError
from doculink.models.document import ExtractedContent, WebSource
from doculink.parsing.sanitizer import clean_content, collapse_whitespace, sanitize

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_USER_AGENT = "DocuLink-WebScraper/1.0 (+https://github.com/doculink/api)"
DEFAULT_MAX_RESPONSE_BYTES = 2_000_000

MIN_TITLE_LENGTH = 3
MAX_TITLE_LENGTH = 200
MIN_MAIN_CONTENT_LENGTH = 100

ALLOWED_SCHEMES = ("http", "https")
BLOCKED_HOSTS = ("localhost", "127.0.0.1")
BLOCKED_HOST_PREFIXES = ("10.", "192.168.")
HTML_CONTENT_TYPES = ("text/html", "application/xhtml")

NOISE_SELECTOR = (
    "script, style, nav, header, footer, aside, "
    ".advertisement, .ads, .sidebar, .menu, .navigation"
)

CONTENT_SELECTORS = [
    "main",
    "article",
    ".content",
    ".main-content",
    ".post-content",
    ".entry-content",
    "#content",
    "#main",
    ".container",
    "body",
]


def _element_text(soup: BeautifulSoup, selector: str) -> str:
    element = soup.select_one(selector)
    return element.get_text().strip() if element else ""


def _meta_content(soup: BeautifulSoup, selector: str) -> str:
    element = soup.select_one(selector)
    if element is None:
        return ""
    content = element.get("content") or ""
    return content.strip() if isinstance(content, str) else ""


# Evaluated in order; the first candidate with an acceptable length wins.
TITLE_CANDIDATES: list[Callable[[BeautifulSoup], str]] = [
    lambda soup: _element_text(soup, "title"),
    lambda soup: _element_text(soup, "h1"),
    lambda soup: _meta_content(soup, 'meta[property="og:title"]'),
    lambda soup: _meta_content(soup, 'meta[name="twitter:title"]'),
    lambda soup: _element_text(soup, ".title"),
    lambda soup: _element_text(soup, ".page-title"),
    lambda soup: _element_text(soup, "header h1"),
]


def normalize_url(url: str) -> str:
    """Trim the URL and default the scheme to https."""
    normalized = url.strip()
    if "://" not in normalized:
        normalized = f"https://{normalized}"
    return normalized


def _is_blocked_host(hostname: str) -> bool:
    if hostname in BLOCKED_HOSTS or hostname.startswith(BLOCKED_HOST_PREFIXES):
        return True
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return address.is_loopback or address.is_unspecified


def check_url_format(url: str) -> str:
    """Validate a URL before any network access.

    Args:
        url: Raw URL as supplied by the caller.

    Returns:
        The normalized URL.

    Raises:
        ValidationError: Malformed URL, unsupported scheme, missing or private host.
    """
    if not url or not url.strip():
        raise ValidationError("URL is required", reason="invalid_url")

    normalized = normalize_url(url)
    try:
        parts = urlsplit(normalized)
        hostname = (parts.hostname or "").lower()
    except ValueError as e:
        raise ValidationError("Invalid URL format", reason="invalid_url", cause=e) from e

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise ValidationError("URL must use http or https", reason="invalid_url")
    if not hostname:
        raise ValidationError("URL must include a host name", reason="invalid_url")
    if _is_blocked_host(hostname):
        raise ValidationError("URLs pointing to local or private hosts are not allowed", reason="disallowed_host")

    return normalized


def is_valid_url_format(url: str) -> bool:
    try:
        check_url_format(url)
    except ValidationError:
        return False
    return True


def extract_title(soup: BeautifulSoup, url: str) -> str:
    """Return the first acceptable title candidate, or one built from the host name."""
    for candidate in TITLE_CANDIDATES:
        text = sanitize(candidate(soup))
        if MIN_TITLE_LENGTH <= len(text) <= MAX_TITLE_LENGTH:
            return collapse_whitespace(text)

    hostname = urlsplit(url).hostname
    if hostname:
        return f"Content from {hostname}"
    return "Web Page Content"


def _block_text(element: Tag) -> str:
    lines = (line.strip() for line in element.get_text(separator="\n").splitlines())
    return "\n".join(line for line in lines if line)


def extract_main_content(soup: BeautifulSoup) -> str:
    """Pick the longest text among the content selectors.

    Noise elements are removed from the tree first. When even the best
    candidate is shorter than MIN_MAIN_CONTENT_LENGTH the whole body is used.
    """
    for element in soup.select(NOISE_SELECTOR):
        element.decompose()

    best = ""
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = _block_text(element)
        if len(text) > len(best):
            best = text

    if len(best) < MIN_MAIN_CONTENT_LENGTH:
        body = soup.body or soup
        best = _block_text(body)

    return best


class WebScraper:
    """Fetches a web page and extracts its title and main text."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        user_agent: str = DEFAULT_USER_AGENT,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._max_redirects = max_redirects
        self._user_agent = user_agent
        self._max_response_bytes = max_response_bytes
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,
            max_redirects=self._max_redirects,
            headers={"User-Agent": self._user_agent},
            transport=self._transport,
            event_hooks={"request": [_check_request_host]},
        )

    async def validate_url(self, url: str) -> bool:
        """Check a URL with a HEAD request. Never raises.

        Returns:
            True if the URL is well formed, answers below 500 and serves HTML.
        """
        try:
            return await self._head_check(check_url_format(url))
        except DocuLinkError as e:
            logger.warning(f"URL validation failed for {url!r}: {e}")
            return False

    async def _head_check(self, url: str) -> bool:
        # Redirects onto disallowed hosts propagate; every other failure means "not accessible".
        try:
            async with asyncio.timeout(self._timeout):
                async with self._client() as client:
                    response = await client.head(url)
        except DocuLinkError:
            raise
        except Exception as e:
            logger.warning(f"URL validation failed for {url!r}: {e!r}")
            return False

        if response.status_code >= 500:
            return False
        content_type = response.headers.get("content-type", "").lower()
        return any(kind in content_type for kind in HTML_CONTENT_TYPES)

    async def scrape(self, url: str) -> ExtractedContent:
        """Fetch a page and extract its title and main content.

        Args:
            url: Page URL; a missing scheme defaults to https.

        Returns:
            ExtractedContent whose source holds the normalized URL.

        Raises:
            ValidationError: Bad or disallowed URL, unreachable or refusing page.
            ProcessingError: Timeout, unusable response or no extractable text.
        """
        normalized = check_url_format(url)

        if not await self._head_check(normalized):
            raise ValidationError("URL is not accessible or invalid", reason="not_accessible")

        try:
            # Bounds the whole download, not just each individual read.
            async with asyncio.timeout(self._timeout):
                html = await self._fetch(normalized)
            soup = BeautifulSoup(html, "html.parser")
            title = extract_title(soup, normalized)
            content = clean_content(extract_main_content(soup))
        except DocuLinkError:
            raise
        except (httpx.TimeoutException, TimeoutError) as e:
            raise ProcessingError(
                "Request timeout - URL took too long to respond", reason="timeout", cause=e
            ) from e
        except httpx.ConnectError as e:
            raise ValidationError(
                "URL is not accessible or does not exist", reason="not_accessible", cause=e
            ) from e
        except httpx.TooManyRedirects as e:
            raise ValidationError(
                f"URL redirected more than {self._max_redirects} times",
                reason="too_many_redirects",
                cause=e,
            ) from e
        except Exception as e:
            logger.error(f"Web scraping error for {normalized}: {e}")
            raise ProcessingError("Failed to scrape web page", cause=e) from e

        if not content:
            raise ProcessingError(
                "No meaningful content could be extracted from the web page", reason="no_content"
            )

        return ExtractedContent(
            title=title,
            content=content,
            source=WebSource(source_url=normalized),
        )

    async def _fetch(self, url: str) -> str:
        headers = {
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
        async with self._client() as client:
            async with client.stream("GET", url, headers=headers) as response:
                _raise_for_status(response)

                declared = response.headers.get("content-length")
                if declared and declared.isdigit() and int(declared) > self._max_response_bytes:
                    raise self._too_large()

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self._max_response_bytes:
                        raise self._too_large()

                return bytes(body).decode(response.encoding or "utf-8", errors="replace")

    def _too_large(self) -> ValidationError:
        return ValidationError(
            f"Web page exceeds maximum response size ({self._max_response_bytes} bytes)",
            reason="too_large",
        )

    def service_info(self) -> dict[str, object]:
        return {
            "timeout": self._timeout,
            "max_redirects": self._max_redirects,
            "user_agent": self._user_agent,
            "max_response_bytes": self._max_response_bytes,
        }


async def _check_request_host(request: httpx.Request) -> None:
    """Apply the URL policy to every outgoing request, redirect hops included."""
    check_url_format(str(request.url))


def _raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if 200 <= status < 300:
        return
    if status == 404:
        raise ValidationError("URL not found (404)", reason="not_found")
    if status == 403:
        raise ValidationError("Access forbidden (403) - URL blocks web scraping", reason="forbidden")
    raise ValidationError(f"HTTP error {status}: {response.reason_phrase}", reason="http_error")
