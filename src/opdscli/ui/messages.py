"""Messages sent from the controller to the presentation layer."""

from dataclasses import dataclass, field
from typing import Union

from PIL import Image

from ..messages import ControllerMessage
from ..model import EntryType
from ..server import Server


@dataclass(frozen=True)
class AddConnection:
    """Register a connection in the connection menus."""

    name: str
    server: Server
    password: str | None = None


@dataclass(frozen=True)
class UpdateDirectoryView:
    """Replace the entries of the directory view.

    status is "Loading...", "" or an error summary. When both entries and status
    are empty the view shows "No files found."
    """

    title: str
    entries: list[EntryType] = field(default_factory=list)
    status: str = ""


@dataclass(frozen=True)
class ShowInfo:
    """Show a modal dialog, replacing any open one."""

    title: str
    body: str


@dataclass(frozen=True)
class ShowContextMenu:
    """Show a popup whose entries send their message back when chosen."""

    title: str
    entries: list[tuple[str, ControllerMessage]]


@dataclass(frozen=True)
class StoreImage:
    """Cache a decoded cover image for the entry with this title."""

    title: str
    image: Image.Image


@dataclass(frozen=True)
class PasswordPrompt:
    """Ask for the password of a configured server."""

    name: str
    server: Server


@dataclass(frozen=True)
class ShowNotification:
    """Transient notification that never captures input."""

    title: str
    body: str


UIMessage = Union[
    AddConnection,
    UpdateDirectoryView,
    ShowInfo,
    ShowContextMenu,
    StoreImage,
    PasswordPrompt,
    ShowNotification,
]
