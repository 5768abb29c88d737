"""Tests for the controller."""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from conftest import BASE_URL, EPUB_BYTES
from PIL import Image
from keyring.errors import KeyringError

from opdscli.config import Config
from opdscli.connection import LocalConnection, OnlineConnection
from opdscli.controller import LOCAL, ConnectionHandle, Controller
from opdscli.messages import (
    AddConnection,
    ChangeConnection,
    Delete,
    Download,
    EntrySelected,
    GoBack,
    Navigate,
    Open,
    Rename,
    RequestImage,
    Search,
)
from opdscli.model import Directory, EntryData, File, OPDSEntry
from opdscli.server import Server
from opdscli.ui import messages as ui


@pytest.fixture
def controller(tmp_path) -> Controller:
    """A controller whose download directory holds a.epub and sub/."""
    (tmp_path / "a.epub").write_bytes(EPUB_BYTES)
    (tmp_path / "sub").mkdir()
    config = Config(download_directory=str(tmp_path))
    return Controller(
        config=config,
        config_path=tmp_path / "config.toml",
        download_directory=tmp_path.as_uri(),
    )


@pytest.fixture
def online(controller, client) -> Controller:
    """The controller with a remote catalog as the active connection."""
    connection = OnlineConnection(server=Server(base_url=BASE_URL), client=client)
    controller.connections["example"] = ConnectionHandle(connection=connection)
    controller.current_tab = "example"
    return controller


def drain(queue: asyncio.Queue) -> list:
    """Return every queued message."""
    messages: list = []
    while not queue.empty():
        messages.append(queue.get_nowait())
    return messages


async def finish_tasks(controller: Controller) -> None:
    """Wait for all spawned tasks."""
    await asyncio.gather(*list(controller.tasks))


def opds_entry(**kwargs) -> OPDSEntry:
    return OPDSEntry(data=EntryData(title="Book", **kwargs))


class TestEntrySelection:
    """Test what happens when an entry is submitted."""

    @pytest.mark.asyncio
    async def test_file_shows_context_menu(self, controller, tmp_path) -> None:
        url: str = (tmp_path / "a.epub").as_uri()
        controller.controller_queue.put_nowait(EntrySelected(entry=File(title="a.epub", url=url)))
        await controller.dispatch_pending()

        [menu] = drain(controller.ui_queue)
        assert isinstance(menu, ui.ShowContextMenu)
        assert [label for label, _ in menu.entries] == ["Open", "Delete", "Rename"]
        assert menu.entries[0][1] == Open(url=url)
        assert menu.entries[1][1] == Delete(url=url)

    @pytest.mark.asyncio
    async def test_directory_navigates(self, controller, tmp_path) -> None:
        url: str = (tmp_path / "sub").as_uri()
        controller.entry_selected(entry=Directory(title="sub", url=url))
        assert drain(controller.controller_queue) == [Navigate(url=url)]

    @pytest.mark.asyncio
    async def test_feed_entry_navigates(self, controller) -> None:
        entry = opds_entry(
            href="https://ex.org/feed/1",
            downloads=[("https://ex.org/dl/1.epub", "application/epub+zip")],
        )
        controller.entry_selected(entry=entry)
        assert drain(controller.controller_queue) == [Navigate(url="https://ex.org/feed/1")]

    @pytest.mark.asyncio
    async def test_unsupported_entry_shows_error(self, controller) -> None:
        entry = opds_entry(unsupported="http://opds-spec.org/acquisition/buy")
        controller.controller_queue.put_nowait(EntrySelected(entry=entry))
        await controller.dispatch_pending()

        assert drain(controller.ui_queue) == [
            ui.ShowInfo(
                title="Error",
                body="Unsupported acquisition type: http://opds-spec.org/acquisition/buy",
            )
        ]

    @pytest.mark.asyncio
    async def test_entry_without_action(self, controller) -> None:
        controller.controller_queue.put_nowait(EntrySelected(entry=opds_entry()))
        await controller.dispatch_pending()
        assert drain(controller.ui_queue) == [
            ui.ShowInfo(title="Error", body="Cannot perform any action on this entry.")
        ]

    def test_publication_offers_downloads(self, controller) -> None:
        entry = opds_entry(
            downloads=[
                ("https://ex.org/dl/1.epub", "application/epub+zip"),
                ("https://ex.org/dl/1.pdf", "application/pdf"),
            ]
        )
        controller.entry_selected(entry=entry)

        [menu] = drain(controller.ui_queue)
        assert menu.entries == [
            ("Download as application/epub+zip", Download(url="https://ex.org/dl/1.epub")),
            ("Download as application/pdf", Download(url="https://ex.org/dl/1.pdf")),
        ]


class TestNavigation:
    """Test navigation messages."""

    @pytest.mark.asyncio
    async def test_navigate_reports_loading_then_entries(self, controller, tmp_path) -> None:
        url: str = (tmp_path / "sub").as_uri()
        await controller.handle_message(message=Navigate(url=url))

        assert drain(controller.ui_queue) == [
            ui.UpdateDirectoryView(title=url, entries=[], status="Loading...")
        ]
        await finish_tasks(controller)
        assert drain(controller.ui_queue) == [
            ui.UpdateDirectoryView(title=url, entries=[], status="")
        ]

    @pytest.mark.asyncio
    async def test_failed_navigation_reports_status(self, controller, tmp_path) -> None:
        url: str = (tmp_path / "missing").as_uri()
        await controller.handle_message(message=Navigate(url=url))
        await finish_tasks(controller)

        *_, update = drain(controller.ui_queue)
        assert update.title == url
        assert update.entries == []
        assert update.status.startswith("Load failed: ")

    @pytest.mark.asyncio
    async def test_go_back_at_root(self, controller) -> None:
        controller.controller_queue.put_nowait(GoBack())
        await controller.dispatch_pending()
        assert drain(controller.ui_queue) == [
            ui.ShowInfo(title="Error", body="At directory root; cannot go back.")
        ]

    @pytest.mark.asyncio
    async def test_go_back(self, controller, tmp_path) -> None:
        handle: ConnectionHandle = controller.connections[LOCAL]
        await handle.connection.navigate_to(url=(tmp_path / "sub").as_uri())

        await controller.handle_message(message=GoBack())

        [update] = drain(controller.ui_queue)
        assert update.title == tmp_path.as_uri()
        assert len(update.entries) == 2

    @pytest.mark.asyncio
    async def test_change_connection(self, online) -> None:
        await online.handle_message(message=ChangeConnection(name=LOCAL))
        assert online.current_tab == LOCAL
        await finish_tasks(online)
        *_, update = drain(online.ui_queue)
        assert len(update.entries) == 2

    @pytest.mark.asyncio
    async def test_change_to_unknown_connection(self, controller) -> None:
        controller.controller_queue.put_nowait(ChangeConnection(name="nowhere"))
        await controller.dispatch_pending()
        assert controller.current_tab == LOCAL
        assert drain(controller.ui_queue) == [
            ui.ShowInfo(title="Error", body="No connection named nowhere.")
        ]

    @pytest.mark.asyncio
    async def test_local_search(self, controller, tmp_path) -> None:
        await controller.handle_message(message=Search(query="a.ep"))
        assert drain(controller.ui_queue) == [
            ui.UpdateDirectoryView(
                title="Search results for a.ep",
                entries=[File(title="a.epub", url=(tmp_path / "a.epub").as_uri())],
                status="",
            )
        ]

    @pytest.mark.asyncio
    async def test_remote_search_unavailable(self, online) -> None:
        online.controller_queue.put_nowait(Search(query="x"))
        await online.dispatch_pending()
        assert drain(online.ui_queue) == [
            ui.ShowInfo(title="Error", body="Server does not have searching enabled.")
        ]


class TestDownloads:
    """Test downloading into the download directory."""

    @pytest.mark.asyncio
    async def test_download(self, online, tmp_path) -> None:
        url = "https://ex.org/dl/1.epub"
        await online.handle_message(message=Download(url=url))
        assert drain(online.ui_queue) == [ui.ShowNotification(title="Starting download", body=url)]

        await finish_tasks(online)

        assert drain(online.ui_queue) == [
            ui.ShowNotification(title="Attention", body="File book.epub finished downloading")
        ]
        assert (tmp_path / "book.epub").read_bytes() == EPUB_BYTES

    @pytest.mark.asyncio
    async def test_failed_download(self, online) -> None:
        url = "https://ex.org/dl/missing.epub"
        await online.handle_message(message=Download(url=url))
        await finish_tasks(online)

        *_, error = drain(online.ui_queue)
        assert isinstance(error, ui.ShowInfo)
        assert error.body.startswith(f"Download from {url} failed")

    @pytest.mark.asyncio
    async def test_download_stays_in_download_directory(self, online, tmp_path) -> None:
        """Test that a Content-Disposition name with ../ is saved inside the directory."""
        await online.handle_message(message=Download(url="https://ex.org/dl/escape"))
        await finish_tasks(online)

        assert drain(online.ui_queue)[-1] == ui.ShowNotification(
            title="Attention", body="File escaped.epub finished downloading"
        )
        assert (tmp_path / "escaped.epub").read_bytes() == EPUB_BYTES
        assert not (tmp_path.parent / "escaped.epub").exists()

    @pytest.mark.asyncio
    async def test_download_needs_remote_connection(self, controller) -> None:
        controller.controller_queue.put_nowait(Download(url="https://ex.org/dl/1.epub"))
        await controller.dispatch_pending()
        [error] = drain(controller.ui_queue)
        assert isinstance(error, ui.ShowInfo)
        assert controller.tasks == set()


class TestFileMessages:
    """Test file operations in the download directory."""

    @pytest.mark.asyncio
    async def test_rename(self, controller, tmp_path) -> None:
        await controller.handle_message(
            message=Rename(old_path=tmp_path / "a.epub", new_path=Path("b.epub"))
        )
        assert (tmp_path / "b.epub").exists()

    @pytest.mark.asyncio
    async def test_delete(self, controller, tmp_path) -> None:
        await controller.handle_message(message=Delete(url=(tmp_path / "a.epub").as_uri()))
        assert not (tmp_path / "a.epub").exists()

    @pytest.mark.asyncio
    async def test_delete_error_is_reported(self, controller, tmp_path) -> None:
        controller.controller_queue.put_nowait(Delete(url=(tmp_path / "missing").as_uri()))
        await controller.dispatch_pending()
        [error] = drain(controller.ui_queue)
        assert error.title == "Error"

    @pytest.mark.asyncio
    @patch("opdscli.controller.open_with_default_application")
    async def test_open(self, mock_open, controller, tmp_path) -> None:
        url: str = (tmp_path / "a.epub").as_uri()
        await controller.handle_message(message=Open(url=url))
        mock_open.assert_called_once_with(url)

    @pytest.mark.asyncio
    async def test_request_image_ignores_local_entries(self, controller, tmp_path) -> None:
        entry = File(title="a.epub", url=(tmp_path / "a.epub").as_uri())
        await controller.handle_message(message=RequestImage(entry=entry))
        assert controller.tasks == set()
        assert controller.ui_queue.empty()

    @pytest.mark.asyncio
    async def test_request_image_stores_cover(self, online) -> None:
        entry = opds_entry(image="https://ex.org/img/cover.png")
        await online.handle_message(message=RequestImage(entry=entry))
        await finish_tasks(online)

        [message] = drain(online.ui_queue)
        assert isinstance(message, ui.StoreImage)
        assert message.title == "Book"
        assert isinstance(message.image, Image.Image)
        assert message.image.size == (4, 4)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url", ["https://ex.org/img/empty.png", "https://ex.org/img/missing.png"]
    )
    async def test_request_image_without_data(self, online, url) -> None:
        """Test that empty bytes or a failed fetch leave the cover out quietly."""
        await online.handle_message(message=RequestImage(entry=opds_entry(image=url)))
        await finish_tasks(online)
        assert online.ui_queue.empty()

    @pytest.mark.asyncio
    async def test_request_image_undecodable(self, online) -> None:
        entry = opds_entry(image="https://ex.org/img/broken.png")
        await online.handle_message(message=RequestImage(entry=entry))
        await finish_tasks(online)

        [error] = drain(online.ui_queue)
        assert isinstance(error, ui.ShowInfo)
        assert error.title == "Error"


class TestConnections:
    """Test connecting to configured and new catalogs."""

    @pytest.mark.asyncio
    @patch("opdscli.server.keyring.get_password", return_value=None)
    async def test_startup_prompts_for_missing_passwords(self, mock_get, controller) -> None:
        public = Server(base_url=BASE_URL)
        private = Server(base_url=BASE_URL, username="reader")
        controller.config.servers.update({"public": public, "private": private})

        await controller.connect_to_servers()

        assert drain(controller.controller_queue) == [
            AddConnection(name="public", server=public, password=None)
        ]
        assert drain(controller.ui_queue) == [ui.PasswordPrompt(name="private", server=private)]

    @pytest.mark.asyncio
    @patch("opdscli.server.keyring.get_password", side_effect=KeyringError("locked"))
    async def test_keyring_failure_is_fatal(self, mock_get, controller) -> None:
        controller.config.servers["private"] = Server(base_url=BASE_URL, username="reader")
        with pytest.raises(KeyringError):
            await controller.connect_to_servers()

    @pytest.mark.asyncio
    @patch("opdscli.server.keyring.set_password")
    async def test_add_connection(self, mock_set, controller, client, tmp_path) -> None:
        controller.client = client
        server = Server(base_url=BASE_URL, username="reader")

        await controller.handle_message(
            message=AddConnection(name="example", server=server, password="secret")
        )

        assert isinstance(controller.connections["example"].connection, OnlineConnection)
        assert drain(controller.ui_queue) == [
            ui.AddConnection(name="example", server=server, password="secret")
        ]
        assert "[servers.example]" in (tmp_path / "config.toml").read_text()
        mock_set.assert_called_once()

    @pytest.mark.asyncio
    async def test_add_unreachable_connection(self, controller, client) -> None:
        controller.client = client
        controller.controller_queue.put_nowait(
            AddConnection(name="broken", server=Server(base_url="https://ex.org/missing"))
        )
        await controller.dispatch_pending()

        assert "broken" not in controller.connections
        [error] = drain(controller.ui_queue)
        assert error.title == "Error"

    @pytest.mark.asyncio
    async def test_local_name_is_reserved(self, controller) -> None:
        """Test that a connection named local cannot replace the download directory."""
        controller.controller_queue.put_nowait(
            AddConnection(name=LOCAL, server=Server(base_url=BASE_URL))
        )
        await controller.dispatch_pending()

        assert isinstance(controller.connections[LOCAL].connection, LocalConnection)
        [error] = drain(controller.ui_queue)
        assert error == ui.ShowInfo(
            title="Error", body="The name local is reserved for the download directory."
        )
        assert LOCAL not in controller.config.servers


class TestRefresh:
    """Test periodic and filesystem triggered refresh."""

    @pytest.mark.asyncio
    async def test_watcher_refreshes_local(self, controller) -> None:
        watcher = MagicMock()
        watcher.drain.return_value = 1

        await controller.step(watcher=watcher)

        [update] = drain(controller.ui_queue)
        assert len(update.entries) == 2
        assert update.status.startswith("Updated ")

    @pytest.mark.asyncio
    async def test_watcher_ignored_for_remote(self, online) -> None:
        watcher = MagicMock()
        watcher.drain.return_value = 1
        online.frame = 1

        await online.step(watcher=watcher)

        assert online.ui_queue.empty()

    @pytest.mark.asyncio
    async def test_periodic_refresh_bypasses_cache(self, online, requests) -> None:
        handle: ConnectionHandle = online.connections["example"]
        await handle.connection.get_page(url=BASE_URL)
        assert len(requests) == 1

        await online.step()

        assert len(requests) == 2
        [update] = drain(online.ui_queue)
        assert update.title == BASE_URL
        assert len(update.entries) == 2

    def test_refresh_interval_in_frames(self, controller) -> None:
        assert controller.refresh_frames == 30 * 300
