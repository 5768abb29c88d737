"""Decorator utilities for opdscli."""

import functools
import logging
from collections.abc import Callable
from typing import Any

from ..ui.messages import ShowInfo

logger: logging.Logger = logging.getLogger(name=__name__)


def reports_errors(task: Callable) -> Callable:
    """Decorator for controller tasks that turns any exception into an error dialog.

    The wrapped coroutine method must belong to an object with a ui_queue attribute.

    Args:
        task: The coroutine method to wrap

    Returns:
        A wrapped coroutine method that never raises
    """

    @functools.wraps(wrapped=task)
    async def wrapper(self, *args, **kwargs) -> Any:
        try:
            return await task(self, *args, **kwargs)
        except Exception as err:
            logger.error(msg=f"{task.__name__} failed: {err}")
            self.ui_queue.put_nowait(ShowInfo(title="Error", body=str(err)))
            return None

    return wrapper
