"""Controller for opdscli.

The controller owns every connection and talks to the presentation layer through two
queues: ControllerMessages come in on controller_queue, UIMessages go out on ui_queue.
Slow work (HTTP requests, downloads, image decoding) runs in tasks that report back on
ui_queue when they finish.
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import httpx
from keyring.errors import KeyringError

from .config import Config, write_to_config
from .connection import Connection, LocalConnection, OnlineConnection, build_client
from .errors import OPDSError, PasswordNotFound, UnsupportedEntry
from .messages import (
    AddConnection,
    ChangeConnection,
    ControllerMessage,
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
from .model import Directory, EntryType, File, OPDSEntry
from .server import Server, store_password
from .ui import messages as ui
from .utils.decorators import reports_errors
from .utils.files import delete_path, open_with_default_application, rename_full_dir_fname, save_as
from .utils.image import decode_image
from .utils.url import file_url_to_path
from .watcher import DirectoryWatcher

logger: logging.Logger = logging.getLogger(name=__name__)

LOCAL = "local"
FPS = 30


class Presentation(Protocol):
    """What the controller needs from the presentation layer."""

    async def run_async(self) -> Any: ...


class ConnectionHandle:
    """A connection and the lock that serializes tasks using it.

    Usage:
        async with handle as connection:
            await connection.navigate_to(url)
    """

    def __init__(self, connection: Connection) -> None:
        self.connection: Connection = connection
        self.lock = asyncio.Lock()

    async def __aenter__(self) -> Connection:
        await self.lock.acquire()
        return self.connection

    async def __aexit__(self, *exc_info) -> None:
        self.lock.release()


class Controller:
    """Routes messages between the presentation layer and the connections."""

    def __init__(self, config: Config, config_path: Path, download_directory: str) -> None:
        """Build the controller with a connection to the download directory.

        Args:
            config: Parsed configuration
            config_path: Location of the configuration on disk
            download_directory: file:// URL of the download directory
        """
        self.controller_queue: asyncio.Queue[ControllerMessage] = asyncio.Queue()
        self.ui_queue: asyncio.Queue[ui.UIMessage] = asyncio.Queue()

        self.config: Config = config
        self.config_path: Path = config_path
        self.download_directory: str = download_directory

        self.connections: dict[str, ConnectionHandle] = {
            LOCAL: ConnectionHandle(connection=LocalConnection(init_dir=download_directory))
        }
        self.current_tab: str = LOCAL
        self.client: httpx.AsyncClient | None = None
        self.tasks: set[asyncio.Task] = set()

        self.frame: int = 0
        self.refresh_frames: int = max(1, int(FPS * config.refresh_interval))

    @property
    def http_client(self) -> httpx.AsyncClient:
        """HTTP client shared by remote connections, created on first use."""
        if self.client is None:
            self.client = build_client()
        return self.client

    @property
    def active(self) -> ConnectionHandle:
        """Handle of the currently active connection."""
        return self.connections[self.current_tab]

    def send(self, message: ui.UIMessage) -> None:
        """Post a message to the presentation layer."""
        self.ui_queue.put_nowait(message)

    def spawn(self, coroutine) -> asyncio.Task:
        """Run a coroutine as an independent task."""
        task: asyncio.Task = asyncio.create_task(coroutine)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task

    async def connect_to_servers(self) -> None:
        """Connect to the servers of the configuration.

        Servers whose password is available (or not needed) are connected by sending
        AddConnection to ourselves. Servers with a username but no keyring entry get a
        password prompt.

        Raises:
            KeyringError: If the keyring backend fails
        """
        missing_passwords: list[tuple[str, Server]] = []

        for name, server in self.config.servers.items():
            try:
                password: str | None = await asyncio.to_thread(server.get_password)
            except PasswordNotFound:
                logger.info(msg=f"No password stored for {name}, asking the user")
                missing_passwords.append((name, server))
                continue
            except KeyringError as err:
                logger.error(msg=f"Could not retrieve password for connection {name}: {err}")
                raise

            self.controller_queue.put_nowait(
                AddConnection(name=name, server=server, password=password)
            )

        for name, server in missing_passwords:
            self.send(ui.PasswordPrompt(name=name, server=server))

    async def change_connection(self, name: str) -> None:
        """Make the connection called name the active one and show its current page."""
        if name not in self.connections:
            raise OPDSError(f"No connection named {name}.")
        self.current_tab = name
        handle: ConnectionHandle = self.connections[name]
        self.navigate_to_async(handle=handle, url=handle.connection.current_address())

    def navigate_to_async(self, handle: ConnectionHandle, url: str) -> None:
        """Move a connection to url in a background task.

        The view shows "Loading..." right away and is updated when the task is done.
        """
        self.spawn(self._navigate(handle=handle, url=url))
        self.send(ui.UpdateDirectoryView(title=url, entries=[], status="Loading..."))

    async def _navigate(self, handle: ConnectionHandle, url: str) -> None:
        async with handle as connection:
            try:
                entries: list[EntryType] = await connection.navigate_to(url=url)
            except Exception as err:
                logger.error(msg=f"Loading {url} failed: {err}")
                self.send(
                    ui.UpdateDirectoryView(
                        title=connection.current_address(),
                        entries=[],
                        status=f"Load failed: {err}",
                    )
                )
                return
            self.send(
                ui.UpdateDirectoryView(
                    title=connection.current_address(), entries=entries, status=""
                )
            )

    def entry_selected(self, entry: EntryType) -> None:
        """React to an entry being submitted in the directory view.

        Files get a context menu, directories and navigable OPDS entries are opened,
        publications get a menu with one download per format.

        Raises:
            UnsupportedEntry: If nothing can be done with the entry
        """
        if isinstance(entry, File):
            path: Path = file_url_to_path(url=entry.url)
            self.send(
                ui.ShowContextMenu(
                    title=entry.title,
                    entries=[
                        ("Open", Open(url=entry.url)),
                        ("Delete", Delete(url=entry.url)),
                        ("Rename", Rename(old_path=path, new_path=path)),
                    ],
                )
            )
        elif isinstance(entry, Directory):
            self.controller_queue.put_nowait(Navigate(url=entry.url))
        elif isinstance(entry, OPDSEntry):
            data = entry.data
            if data.unsupported:
                raise UnsupportedEntry(f"Unsupported acquisition type: {data.unsupported}")

            # entries linking to a feed behave like directories
            if data.href:
                self.controller_queue.put_nowait(Navigate(url=data.href))
                return

            if not data.downloads:
                raise UnsupportedEntry("Cannot perform any action on this entry.")

            self.send(
                ui.ShowContextMenu(
                    title=data.title,
                    entries=[
                        (f"Download as {mime_type}", Download(url=url))
                        for url, mime_type in data.downloads
                    ],
                )
            )

    def update_config(self, name: str, server: Server) -> None:
        """Save the server under name in the configuration file."""
        self.config.servers[name] = server
        write_to_config(config=self.config, config_path=self.config_path)

    async def add_connection(self, name: str, server: Server, password: str | None) -> None:
        """Connect to a catalog and register it with the presentation layer.

        Raises:
            OPDSError: If name is the reserved name of the download directory
        """
        if name == LOCAL:
            raise OPDSError(f"The name {LOCAL} is reserved for the download directory.")
        await asyncio.to_thread(store_password, server, password)

        connection: OnlineConnection = await OnlineConnection.connect(
            server=server,
            client=self.http_client,
            password=password,
            cache_size=self.config.cache_size,
        )
        self.connections[name] = ConnectionHandle(connection=connection)

        self.update_config(name=name, server=server)
        self.send(ui.AddConnection(name=name, server=server, password=password))

    @reports_errors
    async def _download(self, handle: ConnectionHandle, url: str) -> None:
        async with handle as connection:
            if not isinstance(connection, OnlineConnection):
                raise OPDSError("Files can only be downloaded from a catalog.")
            try:
                filename, data = await connection.download(url=url)
            except httpx.HTTPError as err:
                logger.error(msg=f"Download from {url} failed: {err}")
                self.send(ui.ShowInfo(title="Error", body=f"Download from {url} failed: {err}"))
                return

        try:
            saved: Path = await asyncio.to_thread(save_as, data, self.download_directory, filename)
            message: str = f"File {saved.name} finished downloading"
        except (OPDSError, OSError) as err:
            logger.error(msg=f"Saving {filename} failed: {err}")
            message = str(err)
        self.send(ui.ShowNotification(title="Attention", body=message))

    @reports_errors
    async def _request_image(self, handle: ConnectionHandle, title: str, url: str) -> None:
        async with handle as connection:
            data: bytes = await connection.get_image_bytes(url=url)
        if not data:
            logger.debug(msg=f"No image data for {title}")
            return
        image = await asyncio.to_thread(decode_image, data)
        self.send(ui.StoreImage(title=title, image=image))

    async def handle_message(self, message: ControllerMessage) -> None:
        """React to a message from the presentation layer.

        Raises:
            Exception: Any error, shown to the user by run()
        """
        handle: ConnectionHandle = self.active

        if isinstance(message, EntrySelected):
            self.entry_selected(entry=message.entry)
        elif isinstance(message, Open):
            await asyncio.to_thread(open_with_default_application, message.url)
        elif isinstance(message, Delete):
            await asyncio.to_thread(delete_path, message.url)
        elif isinstance(message, AddConnection):
            await self.add_connection(
                name=message.name, server=message.server, password=message.password
            )
        elif isinstance(message, ChangeConnection):
            await self.change_connection(name=message.name)
        elif isinstance(message, GoBack):
            async with handle as connection:
                entries: list[EntryType] = await connection.back()
                self.send(
                    ui.UpdateDirectoryView(
                        title=connection.current_address(), entries=entries, status=""
                    )
                )
        elif isinstance(message, Download):
            if not isinstance(handle.connection, OnlineConnection):
                raise OPDSError("Files can only be downloaded from a catalog.")
            self.spawn(self._download(handle=handle, url=message.url))
            self.send(ui.ShowNotification(title="Starting download", body=message.url))
        elif isinstance(message, Navigate):
            self.navigate_to_async(handle=handle, url=message.url)
        elif isinstance(message, RequestImage):
            entry: EntryType = message.entry
            if isinstance(entry, OPDSEntry) and entry.data.image:
                self.spawn(
                    self._request_image(handle=handle, title=entry.title, url=entry.data.image)
                )
        elif isinstance(message, Rename):
            await asyncio.to_thread(rename_full_dir_fname, message.old_path, message.new_path)
        elif isinstance(message, Search):
            async with handle as connection:
                results: list[EntryType] = await connection.search(query=message.query)
            self.send(
                ui.UpdateDirectoryView(
                    title=f"Search results for {message.query}", entries=results, status=""
                )
            )
        else:
            raise OPDSError(f"Unknown message: {message!r}")

    async def refresh(self) -> None:
        """Reload the page shown by the active connection, bypassing the cache."""
        async with self.active as connection:
            address: str = connection.current_address()
            if isinstance(connection, OnlineConnection):
                connection.cache.invalidate(url=address)
            try:
                entries: list[EntryType] = await connection.get_page(url=address)
            except Exception as err:
                logger.error(msg=f"Refreshing {address} failed: {err}")
                self.send(
                    ui.UpdateDirectoryView(
                        title=address, entries=[], status=f"Refresh failed: {err}"
                    )
                )
                return

        self.send(
            ui.UpdateDirectoryView(
                title=address,
                entries=entries,
                status=f"Updated {datetime.now(tz=timezone.utc):%Y-%m-%d %H:%M:%S} UTC",
            )
        )

    async def dispatch_pending(self) -> None:
        """Handle every queued controller message, turning errors into dialogs."""
        while not self.controller_queue.empty():
            message: ControllerMessage = self.controller_queue.get_nowait()
            try:
                await self.handle_message(message=message)
            except Exception as err:
                logger.error(msg=f"Handling {type(message).__name__} failed: {err}")
                self.send(ui.ShowInfo(title="Error", body=str(err)))

    async def step(self, watcher: DirectoryWatcher | None = None) -> None:
        """Run one frame: dispatch messages and refresh if needed."""
        await self.dispatch_pending()

        if watcher is not None and watcher.drain() and self.current_tab == LOCAL:
            await self.refresh()

        if self.frame % self.refresh_frames == 0 and self.current_tab != LOCAL:
            await self.refresh()

        self.frame += 1

    async def run(self, presentation: Presentation) -> None:
        """Main loop, runs until the presentation layer exits.

        Args:
            presentation: The terminal UI, reading ui_queue and writing controller_queue
        """
        ui_task: asyncio.Task = asyncio.create_task(presentation.run_async())

        await self.change_connection(name=LOCAL)
        await self.connect_to_servers()

        watcher = DirectoryWatcher(directory=file_url_to_path(url=self.download_directory))
        watcher.start()

        try:
            while not ui_task.done():
                await self.step(watcher=watcher)
                await asyncio.sleep(1 / FPS)
        finally:
            watcher.stop()
            for task in list(self.tasks):
                task.cancel()
            if self.client is not None:
                await self.client.aclose()

        await ui_task
