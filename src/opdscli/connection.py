"""Connections to the local download directory and to remote OPDS catalogs."""

import asyncio
import logging
import time
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from pathlib import Path

import httpx

from .cache import PageCache
from .errors import NavigationError, SearchUnavailable
from .feed import feed_entries, find_search_url, parse_feed
from .model import Directory, EntryType, File, process_opds_entry
from .server import Server
from .utils.files import read_dir
from .utils.url import (
    extract_filename_from_content_disposition,
    file_url_to_path,
    last_path_segment,
    validate_url,
)

logger: logging.Logger = logging.getLogger(name=__name__)

USER_AGENT = "opdscli"
DEFAULT_CACHE_SIZE = 1000


def build_client() -> httpx.AsyncClient:
    """Create the HTTP client shared by all remote connections."""
    return httpx.AsyncClient(headers={"User-Agent": USER_AGENT}, follow_redirects=True)


def build_auth(server: Server, password: str | None) -> httpx.BasicAuth | None:
    """Return basic auth credentials if the server has a username.

    The password may be missing, authentication is attempted with an empty one.
    """
    if not server.username:
        return None
    return httpx.BasicAuth(username=server.username, password=password or "")


class Connection(ABC):
    """A navigable source of entries with its own history."""

    def __init__(self) -> None:
        self.history: list[str] = []

    @property
    @abstractmethod
    def origin(self) -> str:
        """Address shown when the history is empty."""

    def current_address(self) -> str:
        """The currently active URL for the connection."""
        if self.history:
            return self.history[-1]
        return self.origin

    @abstractmethod
    async def get_page(self, url: str) -> list[EntryType]:
        """Return the content of the URL as a list of entries."""

    async def navigate_to(self, url: str) -> list[EntryType]:
        """Push url on the history stack and return its page.

        The URL is pushed even if loading fails; the user can go back from it.
        """
        self.history.append(url)
        logger.info(msg=f"Navigating to {url}")
        return await self.get_page(url=url)

    async def back(self) -> list[EntryType]:
        """Pop the history stack and return the contents of the previous page."""
        if not self.history:
            raise NavigationError(self.root_message)
        self.history.pop()
        return await self.get_page(url=self.current_address())

    @property
    def root_message(self) -> str:
        return "Cannot go back."

    @abstractmethod
    async def get_image_bytes(self, url: str) -> bytes:
        """Return the data of the image at url, or empty bytes on any error."""

    @abstractmethod
    async def search(self, query: str) -> list[EntryType]:
        """Search using the capabilities of the connection."""


def _list_directory(url: str) -> list[EntryType]:
    entries: list[EntryType] = []
    directory: Path = file_url_to_path(url=url)
    for name in read_dir(url=url):
        full_path: Path = directory / name
        if full_path.is_file():
            entries.append(File(title=name, url=full_path.as_uri()))
        else:
            entries.append(Directory(title=name, url=full_path.as_uri()))
    return entries


class LocalConnection(Connection):
    """Connection to the local disk, rooted at the download directory."""

    def __init__(self, init_dir: str) -> None:
        super().__init__()
        self.init_dir: str = init_dir

    @property
    def origin(self) -> str:
        return self.init_dir

    @property
    def root_message(self) -> str:
        return "At directory root; cannot go back."

    async def get_page(self, url: str) -> list[EntryType]:
        return await asyncio.to_thread(_list_directory, url)

    async def get_image_bytes(self, url: str) -> bytes:
        # TODO: render the cover of local epub and pdf files
        return b""

    async def search(self, query: str) -> list[EntryType]:
        """Filter the current directory on titles containing query.

        The re-read is pushed on the history so back() undoes the search.
        """
        entries: list[EntryType] = await self.navigate_to(url=self.current_address())
        return [entry for entry in entries if query in entry.title]


class OnlineConnection(Connection):
    """Connection to a remote OPDS catalog."""

    def __init__(
        self,
        server: Server,
        client: httpx.AsyncClient,
        password: str | None = None,
        search_url: str | None = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        """Initialize the connection without contacting the server, see connect()."""
        super().__init__()
        self.server_info: Server = server
        self.client: httpx.AsyncClient = client
        self.password: str | None = password
        self.auth: httpx.BasicAuth | None = build_auth(server=server, password=password)
        self.search_url: str | None = search_url
        self.cache = PageCache(max_size=cache_size)

    @classmethod
    async def connect(
        cls,
        server: Server,
        client: httpx.AsyncClient,
        password: str | None = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> "OnlineConnection":
        """Contact the catalog and return a connection to it.

        Args:
            server: Catalog to connect to
            client: Shared HTTP client
            password: Password for basic authentication
            cache_size: Number of pages to cache

        Returns:
            The connection, with its search template discovered

        Raises:
            httpx.HTTPError: If the catalog cannot be fetched
            FeedParseError: If the catalog root is not an Atom feed
        """
        connection = cls(server=server, client=client, password=password, cache_size=cache_size)
        response: httpx.Response = await connection.get_request(url=server.base_url)
        response.raise_for_status()

        feed: ET.Element = parse_feed(payload=response.content)
        connection.search_url = await find_search_url(
            client=client, feed=feed, domain=server.domain(), auth=connection.auth
        )
        logger.info(
            msg=f"Connected to {server.base_url} (search {'enabled' if connection.search_url else 'disabled'})"
        )
        return connection

    @property
    def origin(self) -> str:
        return self.server_info.base_url

    @property
    def root_message(self) -> str:
        return "At OPDS root; cannot go back."

    async def get_request(self, url: str) -> httpx.Response:
        """GET url using the credentials of the connection."""
        return await self.client.get(url=url, auth=self.auth)

    async def get_page(self, url: str) -> list[EntryType]:
        cached: list[EntryType] | None = self.cache.lookup(url=url)
        if cached is not None:
            return cached

        response: httpx.Response = await self.get_request(url=url)
        response.raise_for_status()

        feed: ET.Element = parse_feed(payload=response.content)
        domain: str = self.server_info.domain()
        entries: list[EntryType] = [
            process_opds_entry(node=node, base_url=domain) for node in feed_entries(feed=feed)
        ]

        self.cache[url] = entries
        return list(entries)

    async def get_image_bytes(self, url: str) -> bytes:
        try:
            response: httpx.Response = await self.get_request(url=url)
            response.raise_for_status()
            return response.content
        except httpx.HTTPError as e:
            logger.warning(msg=f"Could not fetch image {url}: {e}")
            return b""

    async def search(self, query: str) -> list[EntryType]:
        """Run an OpenSearch query; the terms are substituted without encoding."""
        if not self.search_url:
            raise SearchUnavailable("Server does not have searching enabled.")

        target: str = validate_url(url=self.search_url.replace("{searchTerms}", query))
        return await self.navigate_to(url=target)

    async def download(self, url: str) -> tuple[str, bytes]:
        """Return the filename and data of the file at url.

        The filename comes from the Content-Disposition header if possible, then from
        the last segment of the URL, then from the current time in milliseconds.

        Raises:
            httpx.HTTPError: If the request fails
        """
        response: httpx.Response = await self.get_request(url=url)
        response.raise_for_status()

        filename: str | None = extract_filename_from_content_disposition(
            header=response.headers.get("content-disposition")
        )
        if not filename:
            filename = last_path_segment(url=url) or str(time.time_ns() // 1_000_000)

        logger.info(msg=f"Downloaded {len(response.content)} bytes from {url} as {filename}")
        return filename, response.content
