"""Messages sent from the presentation layer to the controller."""

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .model import EntryType
from .server import Server


@dataclass(frozen=True)
class EntrySelected:
    """An entry was submitted in the directory view."""

    entry: EntryType


@dataclass(frozen=True)
class AddConnection:
    """Add (or replace) a connection to a catalog."""

    name: str
    server: Server
    password: str | None = None


@dataclass(frozen=True)
class ChangeConnection:
    """Make another connection the active tab."""

    name: str


@dataclass(frozen=True)
class GoBack:
    """Move up a page in the active connection."""


@dataclass(frozen=True)
class Open:
    """Open a file URL with the OS mime-type handler."""

    url: str


@dataclass(frozen=True)
class Navigate:
    """Move the active connection to a URL."""

    url: str


@dataclass(frozen=True)
class Download:
    """Download the file at a URL into the download directory."""

    url: str


@dataclass(frozen=True)
class RequestImage:
    """Fetch the cover image of an entry."""

    entry: EntryType


@dataclass(frozen=True)
class Rename:
    """Rename old_path to the filename of new_path."""

    old_path: Path
    new_path: Path


@dataclass(frozen=True)
class Delete:
    """Delete the file or directory at a file URL."""

    url: str


@dataclass(frozen=True)
class Search:
    """Search the active connection."""

    query: str


ControllerMessage = Union[
    EntrySelected,
    AddConnection,
    ChangeConnection,
    GoBack,
    Open,
    Navigate,
    Download,
    RequestImage,
    Rename,
    Delete,
    Search,
]
