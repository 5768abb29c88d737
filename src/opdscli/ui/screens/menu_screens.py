"""Selection lists for opdscli: context menus and the connection chooser."""

from typing import Generic, TypeVar

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Label, ListItem, ListView

T = TypeVar("T")


class MenuScreen(ModalScreen[T | None], Generic[T]):
    """Modal list of labelled choices.

    Dismisses with the value paired with the chosen label, or None on escape.
    """

    BINDINGS = [  # noqa: RUF012
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, choices: list[tuple[str, T]]) -> None:
        """Initialize the menu.

        Args:
            title: Title shown above the list
            choices: Label and value pairs in display order
        """
        super().__init__()
        self.menu_title: str = title
        self.choices: list[tuple[str, T]] = choices

    def compose(self) -> ComposeResult:
        """Define the content layout of the menu."""
        with Container(id="menu-container"):
            yield Label(Text(self.menu_title, style="bold"), id="menu-title")
            if not self.choices:
                yield Label("Nothing to choose from (ESC to go back)")
                return
            menu = ListView(
                *[ListItem(Label(Text(label))) for label, _ in self.choices],
                id="menu-list",
            )
            longest_label: int = max(len(label) for label, _ in self.choices)
            menu.styles.width = min(max(longest_label, len(self.menu_title)) + 6, 120)
            menu.styles.max_width = "100%"
            yield menu

    def on_mount(self) -> None:
        if self.choices:
            self.query_one("#menu-list", ListView).focus()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        """Return the value of the chosen entry."""
        event.stop()
        index: int | None = event.list_view.index
        if index is None:
            return
        self.dismiss(result=self.choices[index][1])

    def action_cancel(self) -> None:
        self.dismiss(None)
