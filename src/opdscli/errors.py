"""Exceptions raised by opdscli."""


class OPDSError(Exception):
    """Base class for errors that are shown to the user as-is."""


class FeedParseError(OPDSError):
    """Raised when a document is not a usable Atom feed."""


class NavigationError(OPDSError):
    """Raised when a connection cannot move through its history."""


class SearchUnavailable(OPDSError):
    """Raised when the active connection cannot search."""


class UnsupportedEntry(OPDSError):
    """Raised when no action exists for a selected entry."""


class SaveError(OPDSError):
    """Raised when downloaded bytes cannot be saved."""


class PasswordNotFound(OPDSError):
    """Raised when the keyring has no entry for a server."""
