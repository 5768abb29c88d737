"""Connection management screens for opdscli."""

import logging

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label

from ...controller import LOCAL
from ...messages import AddConnection
from ...server import Server
from ...utils.url import validate_url

logger: logging.Logger = logging.getLogger(name=__name__)


def build_connection(
    name: str, url: str, username: str, password: str
) -> AddConnection:
    """Turn the dialog fields into an AddConnection message.

    Raises:
        ValueError: If name or URL is empty, the name is reserved, or the URL is not an
            http(s) address
    """
    if not name or not url:
        raise ValueError("Name and URL fields cannot be empty!")
    if name == LOCAL:
        raise ValueError(f"The name {LOCAL} is reserved for the download directory.")
    base_url: str = validate_url(url=url)
    if not base_url.startswith(("http://", "https://")):
        raise ValueError(f"{url} is not an http(s) address.")
    return AddConnection(
        name=name,
        server=Server(base_url=base_url, username=username or None),
        password=password or None,
    )


class ConnectionScreen(ModalScreen[AddConnection | None]):
    """Modal screen for adding or editing a catalog connection."""

    BINDINGS = [  # noqa: RUF012
        ("escape", "close_screen", "Close"),
    ]

    def __init__(self, name: str = "", server: Server | None = None) -> None:
        """Initialize the connection screen.

        Args:
            name: Name of the connection when editing
            server: Server to edit, or None to add a new one
        """
        super().__init__()
        self.connection_name: str = name
        self.server: Server | None = server

    def compose(self) -> ComposeResult:
        """Define the content layout of the connection screen."""
        base_url: str = self.server.base_url if self.server else ""
        username: str = (self.server.username or "") if self.server else ""

        with Container(id="connection-container"):
            yield Label("Enter server information", id="connection-title")
            yield Label("Connection Name")
            yield Input(value=self.connection_name, placeholder="Name (required)", id="name-input")
            yield Label("Server URL")
            yield Input(value=base_url, placeholder="https://example.org/opds", id="url-input")
            yield Label("Username")
            yield Input(value=username, placeholder="Username (if required)", id="username-input")
            yield Label("Password")
            yield Input(password=True, placeholder="Password (if required)", id="password-input")
            with Horizontal(id="connection-buttons"):
                yield Button(label="Ok", id="ok-button")
                yield Button(label="Cancel", id="cancel-button")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "ok-button":
            self.action_save()
        elif event.button.id == "cancel-button":
            self.action_close_screen()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.action_save()

    def action_save(self) -> None:
        """Validate the fields and return the connection."""
        try:
            message: AddConnection = build_connection(
                name=self.query_one("#name-input", Input).value.strip(),
                url=self.query_one("#url-input", Input).value.strip(),
                username=self.query_one("#username-input", Input).value.strip(),
                password=self.query_one("#password-input", Input).value,
            )
        except ValueError as err:
            logger.error(msg=f"Invalid connection: {err}")
            self.notify(title="Connection", message=str(err), severity="error")
            return
        self.dismiss(result=message)

    def action_close_screen(self) -> None:
        self.dismiss(None)
