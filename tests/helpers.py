import httpx

from webtext.fetcher import HTTPFetcher


def make_fetcher(handler, **kwargs) -> HTTPFetcher:
    """HTTPFetcher whose requests are answered by `handler` instead of the network."""
    return HTTPFetcher(transport=httpx.MockTransport(handler), **kwargs)


def html_response(body: str, status_code: int = 200, **headers) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"content-type": "text/html; charset=utf-8", **headers},
        text=body,
    )
