from .config import Config
from .errors import (
    ExtractionError,
    FetchError,
    HTTPStatusError,
    TooManyRedirectsError,
    WebtextError,
)
from .fetcher import FetchResult, HTTPFetcher, fetch_url_content
from .text_extractor import extract_article, extract_textual_content
from .url_utils import is_valid_url, sanitize_and_clip_url, validate_url

__all__ = [
    "Config",
    "ExtractionError",
    "FetchError",
    "FetchResult",
    "HTTPFetcher",
    "HTTPStatusError",
    "TooManyRedirectsError",
    "WebtextError",
    "extract_article",
    "extract_textual_content",
    "fetch_url_content",
    "is_valid_url",
    "sanitize_and_clip_url",
    "validate_url",
]
