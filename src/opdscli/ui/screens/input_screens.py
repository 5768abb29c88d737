"""Single line input dialogs for opdscli (search, rename, password)."""

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label


class InputScreen(ModalScreen[str | None]):
    """Modal screen asking for one line of text.

    Dismisses with the entered text, or None when cancelled.
    """

    BINDINGS = [  # noqa: RUF012
        ("escape", "close_screen", "Close"),
    ]

    def __init__(
        self,
        title: str,
        placeholder: str = "",
        value: str = "",
        password: bool = False,
        button_label: str = "OK",
        allow_empty: bool = False,
    ) -> None:
        """Initialize the input screen.

        Args:
            title: Title of the dialog
            placeholder: Placeholder shown in the empty input
            value: Initial content of the input
            password: Hide the typed characters
            button_label: Label of the submit button
            allow_empty: Accept an empty submission instead of asking for a value
        """
        super().__init__()
        self.dialog_title: str = title
        self.placeholder: str = placeholder
        self.value: str = value
        self.password: bool = password
        self.button_label: str = button_label
        self.allow_empty: bool = allow_empty

    def compose(self) -> ComposeResult:
        """Define the content layout of the input screen."""
        with Container(id="input-container"):
            yield Label(self.dialog_title, id="input-title", markup=False)
            yield Input(
                value=self.value,
                placeholder=self.placeholder,
                password=self.password,
                id="input-field",
            )
            with Horizontal(id="input-buttons"):
                yield Button(label=self.button_label, id="submit-button")
                yield Button(label="Cancel", id="cancel-button")

    def on_mount(self) -> None:
        self.query_one("#input-field", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "submit-button":
            self.action_submit()
        elif event.button.id == "cancel-button":
            self.action_close_screen()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.action_submit()

    def action_submit(self) -> None:
        """Return the text, unless it is empty and that is not allowed."""
        value: str = self.query_one("#input-field", Input).value
        if value or self.allow_empty:
            self.dismiss(result=value)
        else:
            self.notify(message="Please enter a value", title=self.dialog_title)

    def action_close_screen(self) -> None:
        self.dismiss(None)
