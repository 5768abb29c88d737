"""Entry model for opdscli.

Entries are what the directory view lists: files and directories on the local disk, or
entries of an OPDS feed.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Union

from .errors import FeedParseError
from .feed import NS, feed_links, link_rel
from .utils.url import parse_href

logger: logging.Logger = logging.getLogger(name=__name__)

UNSUPPORTED_ACQUISITIONS: tuple[str, ...] = ("borrow", "buy", "subscribe", "sample")


@dataclass(frozen=True)
class EntryData:
    """Data extracted from an Atom entry."""

    title: str
    details: str = ""
    author: str | None = None
    unsupported: str | None = None
    downloads: list[tuple[str, str]] = field(default_factory=list)
    image: str | None = None
    href: str | None = None


@dataclass(frozen=True)
class File:
    """A file in the download directory."""

    title: str
    url: str


@dataclass(frozen=True)
class Directory:
    """A directory below the download directory."""

    title: str
    url: str


@dataclass(frozen=True)
class OPDSEntry:
    """An entry of an OPDS feed, either a navigable feed or a publication."""

    data: EntryData

    @property
    def title(self) -> str:
        """Title of the entry."""
        return self.data.title


EntryType = Union[File, Directory, OPDSEntry]


def get_title_for_entry(entry: EntryType) -> str:
    """Convenience method to retrieve the title for an entry."""
    return entry.title


def _text(node: ET.Element | None) -> str | None:
    if node is None:
        return None
    return "".join(node.itertext())


def _entry_details(node: ET.Element) -> str:
    details: str = ""

    summary: str | None = _text(node=node.find("atom:summary", NS))
    if summary is not None:
        details += f"Summary: {summary}\n\n"

    content: str | None = _text(node=node.find("atom:content", NS))
    if content:
        details += f"{content}\n"

    categories: list[ET.Element] = node.findall("atom:category", NS)
    if categories:
        labels: str = ",".join(category.attrib.get("label", "") for category in categories)
        details += f"Categories: {labels}"

    return details


def process_opds_entry(node: ET.Element, base_url: str) -> OPDSEntry:
    """Convert an Atom <entry> element into an OPDSEntry.

    Args:
        node: The <entry> element
        base_url: Domain of the catalog the entry was retrieved from

    Returns:
        The converted entry

    Raises:
        FeedParseError: If a link has no href or no mime-type
        ValueError: If a link href cannot be parsed
    """
    authors: list[str] = [
        author.findtext("atom:name", default="", namespaces=NS)
        for author in node.findall("atom:author", NS)
    ]

    downloads: list[tuple[str, str]] = []
    image: str | None = None
    href: str | None = None
    unsupported: str | None = None

    for link in feed_links(node=node):
        raw_href: str | None = link.attrib.get("href")
        if raw_href is None:
            raise FeedParseError("malformed feed, expected href on link")
        absolute: str = parse_href(href=raw_href, base_url=base_url)
        rel: str = link_rel(link=link)

        # only free acquisition is supported
        if "acquisition" in rel and any(kind in rel for kind in UNSUPPORTED_ACQUISITIONS):
            unsupported = rel

        mime_type: str | None = link.attrib.get("type")
        if mime_type is None:
            raise FeedParseError("malformed feed, expected mime-type")

        if "application/atom+xml" in mime_type:
            href = absolute
        elif "image" in mime_type:
            image = absolute
        else:
            downloads.append((absolute, mime_type))

    return OPDSEntry(
        data=EntryData(
            title=_text(node=node.find("atom:title", NS)) or "",
            details=_entry_details(node=node),
            author=",".join(authors) if authors else None,
            unsupported=unsupported,
            downloads=downloads,
            image=image,
            href=href,
        )
    )
