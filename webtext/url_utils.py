import re

import structlog
import requests
from urllib.parse import urlsplit

logger = structlog.get_logger(__name__)

_BAD_ESCAPE_RE = re.compile(r'%(?![0-9A-Fa-f]{2})')

# Characters that are not safe in file names on common filesystems
UNSAFE_FILENAME_CHARS = (':', '/', '?', '&', '=', '#', '%', '*', ' ')

# File extensions to skip
SKIP_EXTENSIONS = (
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.svg', '.webp',  # Images
    '.mp4', '.avi', '.mov', '.wmv', '.flv', '.mkv',            # Videos
    '.mp3', '.wav', '.ogg', '.flac',                           # Audio
    '.zip', '.rar', '.tar', '.gz', '.7z',                      # Archives
    '.pdf', '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx'  # Documents
)


def sanitize_and_clip_url(url: str, max_length: int) -> str:
    """Turn a URL into a file name: unsafe characters become '_', then clip."""
    if max_length < 0:
        raise ValueError(f"max_length must be >= 0, got {max_length}")

    sanitized = url
    for char in UNSAFE_FILENAME_CHARS:
        sanitized = sanitized.replace(char, '_')

    return sanitized[:max_length]


def is_valid_url(value: str) -> bool:
    """True when value parses as a URL with both a scheme and a host."""
    if not isinstance(value, str):
        return False
    # urlsplit silently strips some control characters instead of rejecting them
    if any(ord(c) < 0x20 or ord(c) == 0x7f for c in value):
        return False
    try:
        parsed = urlsplit(value)
    except ValueError:
        return False

    # host is whatever follows the userinfo, port included
    host = parsed.netloc.rpartition('@')[2]
    if not parsed.scheme or not host:
        return False
    if any(c.isspace() for c in host):
        return False
    # the query is left raw, every other component must hold valid %XX escapes
    return not _BAD_ESCAPE_RE.search(parsed.netloc + parsed.path + parsed.fragment)


def validate_url(url: str, probe: bool = False, timeout: int = 5) -> dict:
    """Check that a URL is worth fetching as a web page.

    Args:
        url: URL to check
        probe: Also send a HEAD request and require an HTML content type
        timeout: HEAD request timeout in seconds

    Returns:
        dict: {"valid": bool, "reason": str}
    """
    if not url or not is_valid_url(url):
        logger.warning("invalid_url_format", url=url)
        return {
            "valid": False,
            "reason": "Empty or invalid URL"
        }

    parsed = urlsplit(url)
    if parsed.scheme.lower() not in ('http', 'https'):
        logger.warning("invalid_url_scheme", url=url, scheme=parsed.scheme)
        return {
            "valid": False,
            "reason": f"Invalid scheme: {parsed.scheme}"
        }

    path_lower = parsed.path.lower()
    for ext in SKIP_EXTENSIONS:
        if path_lower.endswith(ext):
            logger.info("skipping_file_type", url=url, extension=ext)
            return {
                "valid": False,
                "reason": f"Skipping file type: {ext}"
            }

    if not probe:
        return {
            "valid": True,
            "reason": "Valid URL"
        }

    try:
        logger.debug("sending_head_request", url=url)
        response = requests.head(
            url,
            timeout=timeout,
            allow_redirects=True,
            headers={'User-Agent': 'Mozilla/5.0 (compatible; webtext/0.1)'}
        )
    except requests.Timeout:
        logger.warning("request_timeout", url=url, timeout_seconds=timeout)
        return {
            "valid": False,
            "reason": "Request timeout"
        }
    except requests.ConnectionError as e:
        logger.warning("connection_error", url=url, error=str(e))
        return {
            "valid": False,
            "reason": "Connection error"
        }
    except requests.RequestException as e:
        logger.error("url_validation_error", url=url, error=str(e))
        return {
            "valid": False,
            "reason": f"Request failed: {e}"
        }

    content_type = response.headers.get('content-type', '').lower()
    if 'text/html' not in content_type and 'application/xhtml' not in content_type:
        logger.warning("non_html_content", url=url, content_type=content_type)
        return {
            "valid": False,
            "reason": f"Not HTML content: {content_type}"
        }

    return {
        "valid": True,
        "reason": "Valid HTML URL"
    }
