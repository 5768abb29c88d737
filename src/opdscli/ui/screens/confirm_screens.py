"""Confirmation and information dialogs for opdscli."""

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label


class ConfirmScreen(ModalScreen[bool]):
    """Modal screen for confirming actions like deletion."""

    BINDINGS = [  # noqa: RUF012
        ("escape", "cancel", "Cancel"),
        ("enter", "confirm", "Confirm"),
    ]

    def __init__(self, title="Confirm", message="Are you sure?") -> None:
        """Initialize the confirmation screen.

        Args:
            title: Title of the confirmation dialog
            message: Message to display
        """
        super().__init__()
        self.dialog_title: str = title
        self.message: str = message

    def compose(self) -> ComposeResult:
        """Define the content layout of the confirmation screen."""
        with Container(id="confirm-container"):
            yield Label(self.dialog_title, id="confirm-title", markup=False)
            yield Label(self.message, id="confirm-message", markup=False)
            with Horizontal(id="confirm-buttons"):
                yield Button(label="Confirm", id="confirm-button", variant="error")
                yield Button(label="Cancel", id="cancel-button")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "confirm-button":
            self.action_confirm()
        elif event.button.id == "cancel-button":
            self.action_cancel()

    def action_confirm(self) -> None:
        self.dismiss(result=True)

    def action_cancel(self) -> None:
        self.dismiss(result=False)


class InfoScreen(ModalScreen[None]):
    """Modal dialog showing a message until it is acknowledged."""

    BINDINGS = [  # noqa: RUF012
        ("escape", "close_screen", "Close"),
        ("enter", "close_screen", "Close"),
    ]

    def __init__(self, title: str, body: str) -> None:
        super().__init__()
        self.dialog_title: str = title
        self.body: str = body

    def compose(self) -> ComposeResult:
        with Container(id="info-container"):
            yield Label(self.dialog_title, id="info-title", markup=False)
            yield Label(self.body, id="info-message", markup=False)
            yield Button(label="OK", id="ok-button", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "ok-button":
            self.action_close_screen()

    def action_close_screen(self) -> None:
        self.dismiss(None)
