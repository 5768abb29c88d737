"""Help screen for opdscli."""

from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import MarkdownViewer

# Keys that scroll the help instead of closing it
SCROLL_KEYS: list[str] = ["up", "down", "left", "right", "pageup", "pagedown"]

HELP_TEXT = """# Help for opdscli
## Navigation
- **Arrow keys**: Move in the directory list
- **enter**: Open a directory or feed, show actions for a file or book
- **backspace**: Go back to the previous page
- **/**: Search the current catalog or directory

## Files in the download directory
- **o**: Open the file with the default application
- **d**: Delete the file or directory
- **r**: Rename the file or directory

## Connections
- **l**: Show the local download directory
- **c**: Choose a connection
- **a**: Add a connection to an OPDS catalog
- **e**: Edit a connection

## General keys
- **?**: Show this help
- **t**: Toggle dark and light mode
- **q**: Quit

Passwords are kept in the system keyring, connections are saved in the config file.
"""


class HelpScreen(Screen):
    """A full screen help page."""

    def compose(self) -> ComposeResult:
        """Define the content layout of the help screen."""
        yield MarkdownViewer(
            markdown=HELP_TEXT,
            id="help-content",
            show_table_of_contents=False,
        )

    def on_key(self, event) -> None:
        """Close the help screen on any key press except navigation keys."""
        event.prevent_default()
        if event.key not in SCROLL_KEYS:
            self.app.pop_screen()
