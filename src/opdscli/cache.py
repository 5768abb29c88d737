"""Page cache for remote connections."""

import logging
from collections import OrderedDict

from .model import EntryType

logger: logging.Logger = logging.getLogger(name=__name__)


class PageCache(OrderedDict):
    """Feed pages keyed by URL, dropping the least recently used page when full.

    A max_size of 0 or less keeps every page.
    """

    def __init__(self, max_size: int) -> None:
        """Initialize the PageCache.

        Args:
            max_size: Maximum number of pages to keep
        """
        self.max_size: int = max_size
        super().__init__()

    def __getitem__(self, key: str) -> list[EntryType]:
        value: list[EntryType] = super().__getitem__(key)
        self.move_to_end(key=key)
        return value

    def __setitem__(self, key: str, value: list[EntryType]) -> None:
        if key in self:
            self.move_to_end(key=key)
        super().__setitem__(key, value)
        if 0 < self.max_size < len(self):
            evicted, _ = self.popitem(last=False)
            logger.debug(msg=f"Evicted {evicted} from page cache")

    def lookup(self, url: str) -> list[EntryType] | None:
        """Return a copy of the cached page for url, or None."""
        if url not in self:
            return None
        logger.debug(msg=f"Cache hit for {url}")
        return list(self[url])

    def invalidate(self, url: str) -> None:
        """Forget the cached page for url."""
        self.pop(url, None)
