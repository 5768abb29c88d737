"""URL utility functions for opdscli."""

import logging
from pathlib import Path
from urllib.parse import ParseResult, unquote, urljoin, urlparse
from urllib.request import url2pathname

logger: logging.Logger = logging.getLogger(name=__name__)


def str_to_file_url(path: str) -> str:
    """Convert a filesystem path to a file:// URL.

    Args:
        path: Path to convert, relative paths are resolved first

    Returns:
        The file URL
    """
    return Path(path).expanduser().resolve().as_uri()


def file_url_to_path(url: str) -> Path:
    """Convert a file:// URL back to a filesystem path.

    Args:
        url: URL using the file scheme

    Returns:
        Path the URL points at

    Raises:
        ValueError: If the URL does not use the file scheme
    """
    parsed: ParseResult = urlparse(url=url)
    if parsed.scheme != "file":
        raise ValueError(f"{url} is not a file URL.")
    return Path(url2pathname(parsed.path))


def file_url_is_dir(url: str) -> bool:
    """Check if a URL points to an existing directory."""
    try:
        return file_url_to_path(url=url).is_dir()
    except ValueError:
        return False


def directory_str_to_url(directory: str) -> str:
    """Convert a string expected to name a directory to a file URL.

    Args:
        directory: The string to convert

    Returns:
        file:// URL for the directory

    Raises:
        ValueError: If the string cannot be converted or is not an existing directory
    """
    url: str = str_to_file_url(path=directory)
    if not file_url_is_dir(url=url):
        raise ValueError(f"{directory} is not a directory.")
    return url


def parse_href(href: str, base_url: str) -> str:
    """Parse an href, joining it with base_url when it is relative.

    Args:
        href: Absolute or relative URL
        base_url: URL to resolve relative hrefs against

    Returns:
        Absolute URL

    Raises:
        ValueError: For malformed URLs
    """
    parsed: ParseResult = urlparse(url=href)
    if parsed.scheme:
        return href
    return urljoin(base=base_url, url=href)


def validate_url(url: str) -> str:
    """Make sure a string is an absolute URL with a scheme and a location.

    Args:
        url: URL to check

    Returns:
        The URL unchanged

    Raises:
        ValueError: If the URL is not absolute
    """
    parsed: ParseResult = urlparse(url=url)
    if not parsed.scheme or (parsed.scheme != "file" and not parsed.netloc):
        raise ValueError(f"Invalid URL: {url}")
    return url


def get_domain(url: str) -> str:
    """Return the scheme and host of a URL.

    Example: "https://example.com:8080/opds/root.xml" -> "https://example.com:8080/"
    """
    parsed: ParseResult = urlparse(url=url)
    if not parsed.hostname:
        raise ValueError(f"{url} has no host.")
    host: str = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    if parsed.port:
        host = f"{host}:{parsed.port}"
    return f"{parsed.scheme}://{host}/"


def last_path_segment(url: str) -> str:
    """Return the decoded last path segment of a URL, or an empty string."""
    path: str = urlparse(url=url).path
    return unquote(path.rsplit("/", maxsplit=1)[-1])


def extract_filename_from_content_disposition(header: str | None) -> str | None:
    """Try to extract a filename from a Content-Disposition header.

    Args:
        header: Header value, e.g. 'attachment; filename=foo%20bar.pdf'

    Returns:
        The filename with %20 decoded to spaces, or None
    """
    if not header:
        return None

    candidates: list[str] = [
        part for part in header.split(";") if part.startswith(" filename=")
    ]
    if not candidates:
        return None

    filename: str = candidates[0].removeprefix(" filename=").strip('"')
    return filename.replace("%20", " ") or None
