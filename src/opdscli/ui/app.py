"""Main application class for opdscli."""

import asyncio
import logging
from pathlib import Path
from typing import ClassVar

from PIL import Image as PILImage
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, ListView

from ..controller import LOCAL
from ..messages import (
    AddConnection,
    ChangeConnection,
    ControllerMessage,
    Delete,
    EntrySelected,
    GoBack,
    Open,
    Rename,
    RequestImage,
    Search,
)
from ..model import Directory, EntryType, File
from ..server import Server
from ..utils.error_handling import log_and_notify, notify_message
from ..utils.url import file_url_to_path
from . import messages as ui
from .screens import (
    ConfirmScreen,
    ConnectionScreen,
    HelpScreen,
    InfoScreen,
    InputScreen,
    MenuScreen,
)
from .widgets import DetailsPanel, DirectoryView, EntryItem

logger: logging.Logger = logging.getLogger(name=__name__)

FPS = 30


class OpdsApp(App[None]):
    """A Textual app to browse OPDS catalogs and the local download directory."""

    BINDINGS: ClassVar[list[Binding | tuple[str, str] | tuple[str, str, str]]] = [
        ("?", "toggle_help", "Help"),
        ("/", "search", "Search"),
        ("a", "add_connection", "Add connection"),
        ("backspace", "back", "Back"),
        ("c", "choose_connection", "Connections"),
        ("d", "delete", "Delete"),
        ("e", "edit_connection", "Edit connection"),
        ("l", "local", "Local"),
        ("o", "open", "Open"),
        ("q", "quit", "Quit"),
        ("r", "rename", "Rename"),
        ("t", "toggle_dark", "Toggle dark mode"),
    ]

    CSS_PATH: str = "styles.tcss"

    def __init__(
        self,
        controller_queue: "asyncio.Queue[ControllerMessage]",
        ui_queue: "asyncio.Queue[ui.UIMessage]",
        default_theme: str = "dark",
    ) -> None:
        """Initialize the app.

        Args:
            controller_queue: Messages for the controller
            ui_queue: Messages from the controller, drained every frame
            default_theme: "dark" or "light"
        """
        super().__init__()
        self.controller_queue: asyncio.Queue[ControllerMessage] = controller_queue
        self.ui_queue: asyncio.Queue[ui.UIMessage] = ui_queue

        self.theme = "textual-dark" if default_theme == "dark" else "textual-light"

        # State variables
        self.connections: dict[str, Server] = {}
        self.images: dict[str, PILImage.Image] = {}

    def compose(self) -> ComposeResult:
        """Compose the two panel layout."""
        yield Header(show_clock=True)
        with Horizontal():
            yield DirectoryView(id="directory")
            yield DetailsPanel(id="details")
        yield Footer()

    def on_mount(self) -> None:
        """Start draining controller messages."""
        self.title = "opdscli"
        self.set_interval(1 / FPS, self.process_ui_messages)
        self.query_one("#entries", ListView).focus()

    def send(self, message: ControllerMessage) -> None:
        """Post a message to the controller."""
        logger.debug(msg=f"Sending {type(message).__name__} to controller")
        self.controller_queue.put_nowait(message)

    async def process_ui_messages(self) -> None:
        """Apply every message the controller has queued since the last frame."""
        while not self.ui_queue.empty():
            message: ui.UIMessage = self.ui_queue.get_nowait()
            try:
                await self.handle_ui_message(message=message)
            except Exception as err:
                log_and_notify(app=self, error=err, title="Error")

    async def handle_ui_message(self, message: ui.UIMessage) -> None:  # noqa: PLR0912
        """Apply a message from the controller."""
        if isinstance(message, ui.UpdateDirectoryView):
            await self.query_one(DirectoryView).show(
                title=message.title, entries=message.entries, status=message.status
            )
            entry: EntryType | None = self.query_one(DirectoryView).highlighted_entry
            if entry is None:
                self.query_one(DetailsPanel).clear()
        elif isinstance(message, ui.AddConnection):
            self.connections[message.name] = message.server
            notify_message(app=self, title="Connection", message=f"Connected to {message.name}")
        elif isinstance(message, ui.ShowInfo):
            # one info dialog at a time
            if isinstance(self.screen, InfoScreen):
                self.pop_screen()
            self.push_screen(InfoScreen(title=message.title, body=message.body))
        elif isinstance(message, ui.ShowContextMenu):
            self.push_screen(
                MenuScreen(title=message.title, choices=message.entries),
                callback=self.context_menu_chosen,
            )
        elif isinstance(message, ui.StoreImage):
            self.images[message.title] = message.image
            highlighted: EntryType | None = self.query_one(DirectoryView).highlighted_entry
            if highlighted is not None and highlighted.title == message.title:
                self.query_one(DetailsPanel).show_cover(image=message.image)
        elif isinstance(message, ui.PasswordPrompt):
            self.prompt_password(name=message.name, server=message.server)
        elif isinstance(message, ui.ShowNotification):
            notify_message(app=self, title=message.title, message=message.body)
        else:
            logger.error(msg=f"Unknown UI message: {message!r}")

    def on_list_view_highlighted(self, message: ListView.Highlighted) -> None:
        """Show the highlighted entry in the details panel and fetch its cover."""
        # Skip handling if we're in a modal screen
        if isinstance(self.screen, ModalScreen):
            return
        item = message.item
        if not isinstance(item, EntryItem):
            return

        entry: EntryType = item.entry
        image: PILImage.Image | None = self.images.get(entry.title)
        self.query_one(DetailsPanel).show_entry(entry=entry, image=image)
        if image is None:
            self.send(RequestImage(entry=entry))

    def on_list_view_selected(self, message: ListView.Selected) -> None:
        """Called when an entry is submitted in the directory view."""
        if isinstance(self.screen, ModalScreen):
            return
        if isinstance(message.item, EntryItem):
            self.send(EntrySelected(entry=message.item.entry))

    def context_menu_chosen(self, choice: ControllerMessage | None) -> None:
        """Send the message of a context menu entry, asking for details first if needed."""
        if choice is None:
            return
        if isinstance(choice, Rename):
            self.ask_rename(path=choice.old_path)
        elif isinstance(choice, Delete):
            self.confirm_delete(url=choice.url)
        else:
            self.send(choice)

    def ask_rename(self, path: Path) -> None:
        """Ask for a new name for path and send Rename."""

        def rename(new_name: str | None) -> None:
            if new_name:
                self.send(Rename(old_path=path, new_path=Path(new_name)))

        self.push_screen(
            InputScreen(title=f"Rename {path.name}", value=path.name, button_label="Rename"),
            callback=rename,
        )

    def confirm_delete(self, url: str) -> None:
        """Ask before sending Delete."""
        path: Path = file_url_to_path(url=url)

        def delete(confirmed: bool | None) -> None:
            if confirmed:
                self.send(Delete(url=url))

        self.push_screen(
            ConfirmScreen(title="Delete", message=f"Delete {path}?"),
            callback=delete,
        )

    def prompt_password(self, name: str, server: Server) -> None:
        """Ask for the password of a configured connection and then connect.

        Cancelling leaves the connection out; an empty password connects without one.
        """

        def connect(password: str | None) -> None:
            if password is not None:
                self.send(AddConnection(name=name, server=server, password=password or None))

        self.push_screen(
            InputScreen(
                title=f"Password for {name} ({server.username})",
                password=True,
                button_label="Connect",
                allow_empty=True,
            ),
            callback=connect,
        )

    def local_entry(self) -> File | Directory | None:
        """The highlighted entry if it lives in the download directory."""
        entry: EntryType | None = self.query_one(DirectoryView).highlighted_entry
        if isinstance(entry, (File, Directory)):
            return entry
        log_and_notify(
            app=self, error="Select a file in the download directory.", title="Files",
            severity="warning",
        )
        return None

    def action_back(self) -> None:
        self.send(GoBack())

    def action_search(self) -> None:
        """Search the active connection."""

        def search(query: str | None) -> None:
            if query:
                self.send(Search(query=query))

        self.push_screen(
            InputScreen(title="Search", placeholder="Enter search term...", button_label="Search"),
            callback=search,
        )

    def action_open(self) -> None:
        """Open the highlighted file with the default application."""
        entry = self.local_entry()
        if isinstance(entry, File):
            self.send(Open(url=entry.url))

    def action_delete(self) -> None:
        entry = self.local_entry()
        if entry is not None:
            self.confirm_delete(url=entry.url)

    def action_rename(self) -> None:
        entry = self.local_entry()
        if entry is not None:
            self.ask_rename(path=file_url_to_path(url=entry.url))

    def action_local(self) -> None:
        self.send(ChangeConnection(name=LOCAL))

    def action_choose_connection(self) -> None:
        """Pick the connection to show."""

        def change(name: str | None) -> None:
            if name:
                self.send(ChangeConnection(name=name))

        choices: list[tuple[str, str]] = [(LOCAL, LOCAL)] + [
            (name, name) for name in self.connections
        ]
        self.push_screen(MenuScreen(title="Connections", choices=choices), callback=change)

    def action_add_connection(self) -> None:
        self.push_screen(ConnectionScreen(), callback=self.connection_saved)

    @work
    async def action_edit_connection(self) -> None:
        """Pick a connection and edit its settings."""
        if not self.connections:
            log_and_notify(
                app=self, error="No connections to edit.", title="Connections",
                severity="warning",
            )
            return

        name: str | None = await self.push_screen_wait(
            MenuScreen(title="Edit connection", choices=[(n, n) for n in self.connections])
        )
        if not name:
            return
        result: AddConnection | None = await self.push_screen_wait(
            ConnectionScreen(name=name, server=self.connections[name])
        )
        self.connection_saved(result=result)

    def connection_saved(self, result: AddConnection | None) -> None:
        if result is not None:
            self.send(result)

    def action_toggle_dark(self) -> None:
        """Toggle dark mode."""
        self.theme = (
            "textual-dark" if self.theme == "textual-light" else "textual-light"
        )

    def action_toggle_help(self) -> None:
        """Toggle the help screen."""
        if isinstance(self.screen, HelpScreen):
            self.pop_screen()
        else:
            self.push_screen(HelpScreen())
