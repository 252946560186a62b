"""
Bounded HTTP fetching: caps redirects, total time and body size,
then hands HTML bodies to the text extractor.
"""

import asyncio
import codecs
import re
import time
from datetime import datetime, timezone
from typing import Optional, Dict

import httpx
import structlog

from .config import Config
from .errors import FetchError, HTTPStatusError, TooManyRedirectsError
from .text_extractor import extract_textual_content

logger = structlog.get_logger(__name__)

MAX_REDIRECTS = 10
HTTP_TIMEOUT = 30.0
MAX_CONTENT_SIZE_MB = 10
USER_AGENT = "webtext/0.1"

_META_CHARSET_RE = re.compile(rb'charset\s*=\s*["\']?\s*([a-zA-Z0-9_\-:.]+)', re.IGNORECASE)


class FetchResult:
    def __init__(
        self,
        url: str,
        status_code: int,
        content: bytes = b'',
        headers: Dict[str, str] = None,
        final_url: str = None,
        fetch_time: float = 0.0,
        error: Optional[FetchError] = None,
        content_type: str = None,
        encoding: str = None,
        truncated: bool = False,
    ):
        """Initialize a FetchResult with HTTP response data and metadata."""
        self.url = url
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.final_url = final_url or url
        self.fetch_time = fetch_time
        self.exception = error
        self.content_type = content_type or ''
        self.encoding = encoding
        self.truncated = truncated
        self.timestamp = datetime.now(timezone.utc)

    @property
    def error(self) -> Optional[str]:
        """Human readable error message, or None when the fetch worked."""
        return str(self.exception) if self.exception else None

    @property
    def success(self) -> bool:
        """Check if the fetch was successful (no error and 2xx status code)."""
        return self.exception is None and 200 <= self.status_code < 300

    @property
    def is_html(self) -> bool:
        return 'text/html' in self.content_type

    @property
    def text(self) -> str:
        """Decode the response content to text using detected or fallback encoding."""
        if not self.content:
            return ""
        try:
            return self.content.decode(self.encoding or 'utf-8', errors='replace')
        except LookupError:
            return self.content.decode('utf-8', errors='replace')

    @property
    def size(self) -> int:
        """Get the size of the response content in bytes."""
        return len(self.content)

    def raise_for_error(self):
        if self.exception is not None:
            raise self.exception
        if not self.success:
            raise HTTPStatusError(self.status_code)


class HTTPFetcher:
    def __init__(
        self,
        timeout: float = HTTP_TIMEOUT,
        max_redirects: int = MAX_REDIRECTS,
        max_content_size: int = MAX_CONTENT_SIZE_MB * 1024 * 1024,
        user_agent: str = USER_AGENT,
        transport: httpx.AsyncBaseTransport = None,
    ):
        """Initialize the HTTP fetcher.

        Args:
            timeout: Deadline in seconds for the whole request, body included
            max_redirects: Requests made in total, original included; the
                redirect that would exceed it fails with TooManyRedirectsError
            max_content_size: Body bytes read before the rest is dropped
            user_agent: User-Agent header sent with every request
            transport: Optional httpx transport, used by tests
        """
        self.timeout = float(timeout)
        self.max_redirects = int(max_redirects)
        self.max_content_size = int(max_content_size)
        self.user_agent = user_agent

        headers = {
            'User-Agent': self.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Encoding': 'gzip, deflate',
        }
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            # httpx counts followed redirects, not requests
            max_redirects=max(self.max_redirects - 1, 0),
            headers=headers,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: Config = None, **kwargs) -> "HTTPFetcher":
        """Build a fetcher from the `fetcher` section of a Config."""
        settings = (config or Config()).fetcher
        return cls(
            timeout=settings.get('timeout', HTTP_TIMEOUT),
            max_redirects=settings.get('max_redirects', MAX_REDIRECTS),
            max_content_size=int(settings.get('max_content_size_mb', MAX_CONTENT_SIZE_MB) * 1024 * 1024),
            user_agent=str(settings.get('user_agent', USER_AGENT)),
            **kwargs,
        )

    async def __aenter__(self) -> "HTTPFetcher":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self._client.aclose()

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a URL and return a FetchResult; failures are recorded, not raised."""
        start_time = time.monotonic()

        try:
            result = await asyncio.wait_for(self._get(url, start_time), timeout=self.timeout)

        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("fetch_timeout", url=url, timeout_seconds=self.timeout)
            result = self._failure(url, start_time, FetchError(f"timeout after {self.timeout}s"))

        except httpx.TooManyRedirects:
            logger.warning("fetch_too_many_redirects", url=url, max_redirects=self.max_redirects)
            result = self._failure(url, start_time, TooManyRedirectsError())

        except httpx.ConnectError as e:
            logger.warning("fetch_connection_error", url=url, error=str(e))
            result = self._failure(url, start_time, FetchError(f"connection error: {e}"))

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("fetch_failed", url=url, error=str(e))
            result = self._failure(url, start_time, FetchError(str(e)))

        logger.debug(
            "fetch_completed",
            url=url,
            status_code=result.status_code,
            size=result.size,
            fetch_time=round(result.fetch_time, 3),
            success=result.success,
        )
        return result

    async def fetch_content(self, url: str) -> str:
        """Fetch a URL and return its text.

        HTML bodies are reduced to their readable text, any other payload is
        returned decoded but otherwise untouched.

        Raises:
            TooManyRedirectsError: a redirect chain reaching max_redirects requests
            HTTPStatusError: final status outside the 2xx range
            FetchError: timeout, connection or protocol failure
        """
        result = await self.fetch(url)
        result.raise_for_error()

        if result.is_html:
            return extract_textual_content(result.text)
        return result.text

    async def _get(self, url: str, start_time: float) -> FetchResult:
        async with self._client.stream('GET', url) as response:
            headers = dict(response.headers)
            content_type = response.headers.get('content-type', '').lower()

            if not 200 <= response.status_code < 300:
                logger.warning("non_2xx_response", url=url, status_code=response.status_code)
                return FetchResult(
                    url=url,
                    status_code=response.status_code,
                    headers=headers,
                    final_url=str(response.url),
                    fetch_time=time.monotonic() - start_time,
                    error=HTTPStatusError(response.status_code, response.reason_phrase),
                    content_type=content_type,
                )

            content, truncated = await self._read_limited(response)
            if truncated:
                logger.warning("response_truncated", url=url, max_bytes=self.max_content_size)

            return FetchResult(
                url=url,
                status_code=response.status_code,
                content=content,
                headers=headers,
                final_url=str(response.url),
                fetch_time=time.monotonic() - start_time,
                content_type=content_type,
                encoding=self._extract_encoding(content_type, content),
                truncated=truncated,
            )

    async def _read_limited(self, response: httpx.Response):
        """Read at most max_content_size bytes of the body."""
        chunks = []
        received = 0
        async for chunk in response.aiter_bytes(chunk_size=8192):
            chunks.append(chunk)
            received += len(chunk)
            if received > self.max_content_size:
                break

        content = b''.join(chunks)
        return content[:self.max_content_size], received > self.max_content_size

    def _failure(self, url: str, start_time: float, error: FetchError) -> FetchResult:
        return FetchResult(
            url=url,
            status_code=0,
            fetch_time=time.monotonic() - start_time,
            error=error,
        )

    def _extract_encoding(self, content_type: str, content: bytes) -> str:
        """Extract character encoding from the Content-Type header or the HTML itself."""
        candidates = []
        if 'charset=' in content_type:
            candidates.append(content_type.split('charset=')[1].split(';')[0].strip(' \'"'))

        match = _META_CHARSET_RE.search(content[:1024])
        if match:
            candidates.append(match.group(1).decode('ascii'))

        for charset in candidates:
            try:
                return codecs.lookup(charset).name
            except LookupError:
                logger.debug("unknown_charset", charset=charset)

        return 'utf-8'


def fetch_url_content(url: str, config: Config = None, **kwargs) -> str:
    """Synchronously fetch a URL and return its (extracted) text.

    Extra keyword arguments are passed to HTTPFetcher.from_config.
    """
    async def run() -> str:
        async with HTTPFetcher.from_config(config, **kwargs) as fetcher:
            return await fetcher.fetch_content(url)

    return asyncio.run(run())
