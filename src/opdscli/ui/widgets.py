"""Custom widgets for opdscli."""

from PIL import Image as PILImage
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.widgets import Label, ListItem, ListView, Static

from ..model import Directory, EntryType, File, OPDSEntry
from ..utils.image import render_image
from ..utils.url import file_url_to_path

NO_FILES = "No files found."


def entry_label(entry: EntryType) -> str:
    """Text shown for an entry in the directory view."""
    if isinstance(entry, Directory):
        return f"{entry.title}/"
    return entry.title


class EntryItem(ListItem):
    """A list item that remembers the entry it shows."""

    def __init__(self, entry: EntryType) -> None:
        super().__init__(Label(Text(entry_label(entry=entry))))
        self.entry: EntryType = entry


class DirectoryView(Vertical):
    """Left panel: the current address, its entries and a status line."""

    def compose(self) -> ComposeResult:
        yield Label(id="directory-title")
        yield ListView(id="entries")
        yield Label(id="directory-status")

    async def show(self, title: str, entries: list[EntryType], status: str) -> None:
        """Replace the listed entries.

        Args:
            title: Address shown above the list
            entries: New entries
            status: Status line; "No files found." is shown when both entries and status are empty
        """
        self.query_one("#directory-title", Label).update(Text(title, style="bold"))
        if not entries and not status:
            status = NO_FILES
        self.query_one("#directory-status", Label).update(Text(status, style="italic"))

        list_view: ListView = self.query_one("#entries", ListView)
        await list_view.clear()
        await list_view.extend([EntryItem(entry=entry) for entry in entries])
        if entries:
            list_view.index = 0

    @property
    def highlighted_entry(self) -> EntryType | None:
        """The entry under the cursor, if any."""
        item = self.query_one("#entries", ListView).highlighted_child
        if isinstance(item, EntryItem):
            return item.entry
        return None


class DetailsPanel(VerticalScroll):
    """Right panel: title, author, cover and description of the highlighted entry."""

    def compose(self) -> ComposeResult:
        yield Static(id="details-title")
        yield Static(id="details-author")
        yield Static(id="details-cover")
        yield Static(id="details-body")

    def show_entry(self, entry: EntryType, image: PILImage.Image | None = None) -> None:
        """Show an entry, with its cover if it has been downloaded."""
        self.query_one("#details-title", Static).update(Text(entry.title, style="bold"))

        author: str = ""
        body: str = ""
        if isinstance(entry, OPDSEntry):
            author = entry.data.author or ""
            body = entry.data.details
        elif isinstance(entry, (File, Directory)):
            kind: str = "Directory" if isinstance(entry, Directory) else "File"
            body = f"{kind}: {file_url_to_path(url=entry.url)}"

        self.query_one("#details-author", Static).update(Text(author, style="italic"))
        self.query_one("#details-body", Static).update(Text(body))
        self.show_cover(image=image)

    def show_cover(self, image: PILImage.Image | None) -> None:
        """Render a decoded cover, or clear it."""
        cover: Static = self.query_one("#details-cover", Static)
        if image is None:
            cover.update("")
            return
        cover.update(render_image(image=image))

    def clear(self) -> None:
        """Remove everything from the panel."""
        for widget in self.query(Static):
            widget.update("")
