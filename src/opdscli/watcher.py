"""Filesystem watcher for the download directory."""

import logging
import queue
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger: logging.Logger = logging.getLogger(name=__name__)


class QueueEventHandler(FileSystemEventHandler):
    """Put every filesystem event on a synchronous queue."""

    def __init__(self, events: "queue.SimpleQueue[FileSystemEvent]") -> None:
        super().__init__()
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        # opening and closing files does not change the listing
        if event.event_type in ("opened", "closed", "closed_no_write"):
            return
        logger.debug(msg=f"Filesystem event: {event.event_type} {event.src_path}")
        self.events.put(event)


class DirectoryWatcher:
    """Watch a directory recursively; the controller polls events each frame."""

    def __init__(self, directory: Path) -> None:
        self.directory: Path = directory
        self.events: queue.SimpleQueue[FileSystemEvent] = queue.SimpleQueue()
        self.observer = Observer()

    def start(self) -> None:
        """Start watching in a background thread."""
        self.observer.schedule(
            QueueEventHandler(events=self.events), str(self.directory), recursive=True
        )
        self.observer.start()
        logger.info(msg=f"Watching {self.directory} for changes")

    def stop(self) -> None:
        """Stop the background thread."""
        self.observer.stop()
        self.observer.join()

    def drain(self) -> int:
        """Consume pending events without blocking and return how many there were."""
        count: int = 0
        while True:
            try:
                self.events.get_nowait()
            except queue.Empty:
                return count
            count += 1
