"""Error handling utilities for the opdscli presentation layer."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

# seconds a notification stays on screen
NOTIFICATION_TIMEOUT = 5


def log_and_notify(
    app: Any,
    error: Exception | str,
    title: str,
    severity: str = "error",
) -> None:
    """Log an error and show it to the user as a toast.

    Args:
        app: The Textual app instance (should have notify method)
        error: The exception or message to show
        title: Title for the notification
        severity: Notification severity level
    """
    logger.error(f"{title}: {error}")
    app.notify(
        title=title, message=str(error), severity=severity, timeout=NOTIFICATION_TIMEOUT
    )


def notify_message(app: Any, title: str, message: str) -> None:
    """Log a message from the controller and show it as a transient toast.

    Args:
        app: The Textual app instance
        title: Title of the notification
        message: Body of the notification
    """
    logger.info(f"{title}: {message}")
    app.notify(title=title, message=message, timeout=NOTIFICATION_TIMEOUT)
