import json
from typing import Optional

import structlog
import trafilatura
from lxml import etree, html

from .errors import ExtractionError

logger = structlog.get_logger(__name__)

# Elements whose content is code or markup, not readable text
NON_TEXT_TAGS = ('script', 'style', 'noscript', 'template')


def extract_textual_content(html_content: str) -> str:
    """Return the text of every text node in an HTML document, in document order.

    Unlike a plain DOM text dump, the contents of script, style, noscript and
    template elements are left out, as are comments.
    """
    if not html_content or not html_content.strip():
        return ""

    parser = html.HTMLParser(encoding='utf-8')
    try:
        doc = html.document_fromstring(html_content.encode('utf-8'), parser=parser)
    except etree.ParserError:
        # markup with no elements at all, e.g. only a comment
        logger.debug("html_document_empty", html_length=len(html_content))
        return ""
    except (etree.LxmlError, ValueError) as e:
        logger.error("html_parse_failed", error=str(e), html_length=len(html_content))
        raise ExtractionError(f"failed to parse HTML: {e}") from e

    for element in list(doc.iter(*NON_TEXT_TAGS)):
        element.drop_tree()

    return str(doc.text_content())


def extract_article(html_content: str, url: str = None) -> Optional[dict]:
    """Extract the main article of a page with trafilatura, metadata included."""
    if not html_content or not html_content.strip():
        return None

    result = trafilatura.extract(
        html_content,
        output_format='json',
        include_comments=False,
        include_tables=True,
        with_metadata=True,
        url=url,
    )

    if not result:
        logger.warning("trafilatura_extraction_failed", url=url)
        return None

    try:
        data = json.loads(result)
    except json.JSONDecodeError as e:
        logger.error("json_decode_error", url=url, error=str(e))
        return None

    text = data.get("text") or ""

    return {
        "title": data.get("title"),
        "url": url,
        "author": data.get("author"),
        "hostname": data.get("hostname"),
        "date": data.get("date"),
        "text": text,
        "language": data.get("language"),
        "excerpt": data.get("excerpt"),
        "categories": data.get("categories"),
        "word_count": len(text.split()),
        "char_count": len(text),
        "html_length": len(html_content),
    }
