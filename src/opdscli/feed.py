"""Atom feed and OpenSearch description parsing for opdscli."""

import logging
import xml.etree.ElementTree as ET

import httpx

from .errors import FeedParseError
from .utils.url import parse_href

logger: logging.Logger = logging.getLogger(name=__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
NS: dict[str, str] = {"atom": ATOM_NS}

DEFAULT_REL = "alternate"


def parse_feed(payload: bytes) -> ET.Element:
    """Parse bytes as an Atom feed.

    Args:
        payload: Raw response body

    Returns:
        The <feed> root element

    Raises:
        FeedParseError: If the payload is not XML or not an Atom feed
    """
    try:
        root: ET.Element = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise FeedParseError(f"Unable to parse OPDS feed: {exc}") from exc

    if root.tag != f"{{{ATOM_NS}}}feed":
        raise FeedParseError(f"Expected an Atom feed, found <{root.tag}>")
    return root


def feed_entries(feed: ET.Element) -> list[ET.Element]:
    """Return the <entry> children of a feed."""
    return feed.findall("atom:entry", NS)


def feed_links(node: ET.Element) -> list[ET.Element]:
    """Return the <link> children of a feed or entry."""
    return node.findall("atom:link", NS)


def link_rel(link: ET.Element) -> str:
    """Return the rel of a link, defaulting to 'alternate' as Atom does."""
    return link.attrib.get("rel", DEFAULT_REL)


def parse_osd(document: ET.Element) -> str | None:
    """Get the Atom search template from an OpenSearch description document.

    Args:
        document: Root element of the description

    Returns:
        The template attribute of the first <Url> pointing to an Atom feed, or None
    """
    for node in document.iter():
        if not isinstance(node.tag, str):
            continue
        if node.tag.rsplit("}", maxsplit=1)[-1] != "Url":
            continue
        if "application/atom+xml" in node.attrib.get("type", ""):
            return node.attrib.get("template")
    return None


async def find_search_url(
    client: httpx.AsyncClient,
    feed: ET.Element,
    domain: str,
    auth: httpx.Auth | None = None,
) -> str | None:
    """Find the URL template used for searching an OPDS catalog.

    The feed should carry a link with rel "search" pointing at an OpenSearch
    description, see https://specs.opds.io/opds-1.2#3-search.

    Args:
        client: HTTP client
        feed: Top-level feed of the catalog
        domain: Catalog domain used to resolve relative URLs
        auth: Credentials for the catalog

    Returns:
        Absolute search template containing {searchTerms}, or None
    """
    description_link: ET.Element | None = None
    for link in feed_links(node=feed):
        if link.attrib.get("rel") == "search" and "opensearchdescription" in link.attrib.get("type", ""):
            description_link = link
            break

    if description_link is None:
        logger.info(msg="Catalog does not advertise an OpenSearch description")
        return None

    try:
        target: str = parse_href(href=description_link.attrib.get("href", ""), base_url=domain)
        response: httpx.Response = await client.get(url=target, auth=auth)
        response.raise_for_status()
        document: ET.Element = ET.fromstring(response.content)
        template: str | None = parse_osd(document=document)
        if template is None:
            return None
        return parse_href(href=template, base_url=domain)
    except (httpx.HTTPError, ET.ParseError, ValueError) as e:
        logger.warning(msg=f"Could not read OpenSearch description: {e}")
        return None
