import json

import pytest
from lxml import etree

from webtext import text_extractor
from webtext.errors import ExtractionError
from webtext.text_extractor import extract_article, extract_textual_content


class TestExtractTextualContent:
    def test_concatenates_text_nodes(self):
        html = "<html><head><title>T</title></head><body><p>Hello <b>world</b></p></body></html>"
        assert extract_textual_content(html) == "THello world"

    def test_drops_script_and_style(self):
        html = (
            "<html><head><style>body { margin: 0 }</style></head>"
            "<body><p>visible</p><script>var hidden = 1;</script>"
            "<noscript>enable js</noscript></body></html>"
        )
        assert extract_textual_content(html) == "visible"

    def test_keeps_text_after_removed_element(self):
        assert extract_textual_content("<p>before<script>x()</script>after</p>") == "beforeafter"

    def test_drops_comments(self):
        assert extract_textual_content("<p>a<!-- hidden -->b</p>") == "ab"

    def test_decodes_entities(self):
        assert extract_textual_content("<p>Fish &amp; Chips &lt;3</p>") == "Fish & Chips <3"

    def test_unicode(self):
        assert extract_textual_content("<p>café, 日本語</p>") == "café, 日本語"

    def test_fragment_without_html_root(self):
        assert extract_textual_content("just <em>some</em> text") == "just some text"

    def test_xml_declaration(self):
        html = '<?xml version="1.0" encoding="utf-8"?><html><body><p>x</p></body></html>'
        assert extract_textual_content(html).strip() == "x"

    def test_unencodable_input_raises(self):
        with pytest.raises(ExtractionError, match="failed to parse HTML"):
            extract_textual_content("<p>broken \ud800 surrogate</p>")

    def test_parser_failure_raises(self, monkeypatch):
        def failing_parse(*args, **kwargs):
            raise etree.LxmlError("parser exploded")

        monkeypatch.setattr(text_extractor.html, "document_fromstring", failing_parse)

        with pytest.raises(ExtractionError, match="parser exploded"):
            extract_textual_content("<p>fine</p>")

    @pytest.mark.parametrize("html", ["", "   ", "\n\t"])
    def test_empty_input(self, html):
        assert extract_textual_content(html) == ""


class TestExtractArticle:
    def test_empty_input(self):
        assert extract_article("") is None

    def test_maps_trafilatura_output(self, monkeypatch):
        payload = {
            "title": "A title",
            "author": "Jane Doe",
            "hostname": "example.com",
            "date": "2024-01-02",
            "text": "one two three",
            "language": "en",
            "excerpt": "summary",
            "categories": "news",
        }
        calls = {}

        def fake_extract(html, **kwargs):
            calls.update(kwargs)
            return json.dumps(payload)

        monkeypatch.setattr(text_extractor.trafilatura, "extract", fake_extract)

        html = "<html><body><p>ignored</p></body></html>"
        article = extract_article(html, url="https://example.com/post")

        assert calls["output_format"] == "json"
        assert calls["with_metadata"] is True
        assert article["title"] == "A title"
        assert article["author"] == "Jane Doe"
        assert article["url"] == "https://example.com/post"
        assert article["word_count"] == 3
        assert article["char_count"] == len("one two three")
        assert article["html_length"] == len(html)

    def test_nothing_extracted(self, monkeypatch):
        monkeypatch.setattr(text_extractor.trafilatura, "extract", lambda html, **kwargs: None)
        assert extract_article("<p>x</p>") is None

    def test_real_article(self):
        paragraph = (
            "<p>The old lighthouse on the northern cape has guided fishing boats "
            "through the narrow channel for more than two hundred years, and the "
            "keepers who lived there recorded every storm in a leather logbook.</p>"
        )
        html = (
            "<html><head><title>The lighthouse keepers</title></head><body>"
            "<nav><a href='/'>Home</a></nav>"
            "<article><h1>The lighthouse keepers</h1>" + paragraph * 6 + "</article>"
            "</body></html>"
        )
        article = extract_article(html, url="https://example.com/lighthouse")
        assert article is not None
        assert "lighthouse on the northern cape" in article["text"]
        assert article["word_count"] > 50
