"""Main entry point for opdscli."""

import asyncio
import os
import sys

from keyring.errors import KeyringError

from .config import Configuration
from .controller import Controller
from .ui.app import OpdsApp


def check_platform() -> None:
    """Warn and wait for the user on platforms other than Linux."""
    if not sys.platform.startswith("linux"):
        print(
            "Warning: opdscli is only tested on Linux. "
            "Some features might not work on this platform."
        )
        input("Press Enter to continue...")


def main() -> None:
    """Run the opdscli app.

    Usage:
        opdscli
        opdscli --config path/to/config.toml
        opdscli --create-config path/to/config.toml
        opdscli --version
        opdscli --help
    """
    check_platform()

    home: str | None = os.environ.get("HOME")
    if not home:
        print("Error: The HOME environment variable is not set.")
        sys.exit(1)

    configuration = Configuration(arguments=sys.argv[1:], home=home)

    try:
        controller = Controller(
            config=configuration.config,
            config_path=configuration.config_path,
            download_directory=configuration.download_directory,
        )
        app = OpdsApp(
            controller_queue=controller.controller_queue,
            ui_queue=controller.ui_queue,
            default_theme=configuration.config.default_theme,
        )
        asyncio.run(controller.run(presentation=app))
    except KeyboardInterrupt:
        # Handle Ctrl+C gracefully
        print("\nExiting opdscli...")
    except KeyringError as e:
        print(f"Error: Could not access the system keyring: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        print("See opdscli.log for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
