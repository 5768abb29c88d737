"""Shared fixtures for opdscli tests."""

import io
from collections.abc import Callable

import httpx
import pytest
from PIL import Image

BASE_URL = "https://ex.org/opds"

CATALOG = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example catalog</title>
  <link rel="self" type="application/atom+xml;profile=opds-catalog" href="/opds"/>
  <link rel="search" type="application/opensearchdescription+xml" href="/opds/search.xml"/>
  <entry>
    <title>Book</title>
    <author><name>Ann</name></author>
    <author><name>Bob</name></author>
    <summary>Short</summary>
    <content type="text">Long text</content>
    <category term="f" label="Fiction"/>
    <category term="s" label="SciFi"/>
    <link rel="subsection" type="application/atom+xml" href="/feed/1"/>
    <link rel="http://opds-spec.org/acquisition" type="application/epub+zip" href="/dl/1.epub"/>
  </entry>
  <entry>
    <title>Other</title>
    <link rel="http://opds-spec.org/image" type="image/jpeg" href="https://cdn.ex.org/cover.jpg"/>
    <link rel="http://opds-spec.org/acquisition" type="application/pdf" href="/dl/2.pdf"/>
  </entry>
</feed>
"""

EMPTY_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"><title>Empty</title></feed>
"""

OPENSEARCH = b"""<?xml version="1.0" encoding="UTF-8"?>
<OpenSearchDescription xmlns="http://a9.com/-/spec/opensearch/1.1/">
  <ShortName>Example</ShortName>
  <Url type="text/html" template="/html/search?q={searchTerms}"/>
  <Url type="application/atom+xml;profile=opds-catalog" template="/search?q={searchTerms}"/>
</OpenSearchDescription>
"""

# Minimal payloads that filetype recognizes
EPUB_BYTES = b"PK\x03\x04" + b"\x00" * 26 + b"mimetypeapplication/epub+zip" + b"\x00" * 64
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
MOBI_BYTES = b"\x00" * 60 + b"BOOKMOBI" + b"\x00" * 64


def make_png() -> bytes:
    """A decodable 4x4 PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color="red").save(buffer, format="PNG")
    return buffer.getvalue()


COVER_BYTES = make_png()


@pytest.fixture
def requests() -> list[httpx.Request]:
    """Requests seen by the mock catalog."""
    return []


@pytest.fixture
def catalog_handler(requests) -> Callable[[httpx.Request], httpx.Response]:
    """A fake OPDS catalog at https://ex.org."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        path: str = request.url.path
        if path == "/opds":
            return httpx.Response(200, content=CATALOG)
        if path == "/opds/search.xml":
            return httpx.Response(200, content=OPENSEARCH)
        if path in ("/feed/1", "/search"):
            return httpx.Response(200, content=EMPTY_FEED)
        if path == "/dl/1.epub":
            return httpx.Response(
                200,
                content=EPUB_BYTES,
                headers={"Content-Disposition": "attachment; filename=book.epub"},
            )
        if path == "/dl/My%20Book.epub" or path == "/dl/My Book.epub":
            return httpx.Response(200, content=EPUB_BYTES)
        if path == "/dl/escape":
            return httpx.Response(
                200,
                content=EPUB_BYTES,
                headers={"Content-Disposition": "attachment; filename=../escaped.epub"},
            )
        if path == "/":
            return httpx.Response(200, content=EPUB_BYTES)
        if path == "/img/cover.png":
            return httpx.Response(200, content=COVER_BYTES)
        if path == "/img/broken.png":
            return httpx.Response(200, content=PNG_BYTES)
        if path == "/img/empty.png":
            return httpx.Response(200, content=b"")
        return httpx.Response(404)

    return handler


@pytest.fixture
def client(catalog_handler) -> httpx.AsyncClient:
    """HTTP client talking to the mock catalog."""
    return httpx.AsyncClient(
        transport=httpx.MockTransport(catalog_handler), follow_redirects=True
    )
