"""Screen modules for opdscli."""

from .confirm_screens import ConfirmScreen, InfoScreen
from .connection_screens import ConnectionScreen, build_connection
from .help import HelpScreen
from .input_screens import InputScreen
from .menu_screens import MenuScreen

__all__: list[str] = [
    "ConfirmScreen",
    "ConnectionScreen",
    "HelpScreen",
    "InfoScreen",
    "InputScreen",
    "MenuScreen",
    "build_connection",
]
