"""Configuration module for opdscli."""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from importlib import metadata
from pathlib import Path
from typing import Any

import toml

from .server import Server
from .utils.url import directory_str_to_url

logger: logging.Logger = logging.getLogger(name=__name__)

# joined with $HOME
CONFIG_DIRECTORY = ".config/opdscli"

DEFAULT_THEME = "dark"
DEFAULT_CACHE_SIZE = 1000
DEFAULT_REFRESH_INTERVAL = 300.0


@dataclass
class Config:
    """Contents of config.toml."""

    download_directory: str
    servers: dict[str, Server] = field(default_factory=dict)
    default_theme: str = DEFAULT_THEME
    cache_size: int = DEFAULT_CACHE_SIZE
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Build the configuration from a parsed TOML document.

        Raises:
            KeyError: If download_directory or a server base_url is missing
        """
        values: dict[str, Any] = dict(data)
        servers: dict[str, Server] = {
            name: Server.from_dict(data=server)
            for name, server in values.pop("servers", {}).items()
        }
        return cls(
            download_directory=str(values.pop("download_directory")),
            servers=servers,
            default_theme=str(values.pop("default_theme", DEFAULT_THEME)),
            cache_size=int(values.pop("cache_size", DEFAULT_CACHE_SIZE)),
            refresh_interval=float(values.pop("refresh_interval", DEFAULT_REFRESH_INTERVAL)),
            extra=values,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the configuration, omitting settings left at their defaults."""
        data: dict[str, Any] = {"download_directory": self.download_directory}
        if self.default_theme != DEFAULT_THEME:
            data["default_theme"] = self.default_theme
        if self.cache_size != DEFAULT_CACHE_SIZE:
            data["cache_size"] = self.cache_size
        if self.refresh_interval != DEFAULT_REFRESH_INTERVAL:
            data["refresh_interval"] = self.refresh_interval
        data.update(self.extra)
        if self.servers:
            data["servers"] = {name: server.to_dict() for name, server in self.servers.items()}
        return data


def create_default_config(config_path: Path, home: str) -> None:
    """Create a config at config_path that only sets the download directory to home.

    Args:
        config_path: Where to write the file
        home: Value of $HOME
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(data=f"download_directory = '{home}'\n")


def read_config(config_path: Path, home: str) -> Config:
    """Read the config, creating a default one if none exists.

    Args:
        config_path: Location of config.toml
        home: Value of $HOME, used for the default config

    Returns:
        The parsed configuration

    Raises:
        toml.TomlDecodeError: If the file is not valid TOML
        KeyError: If a required key is missing
    """
    if not config_path.exists():
        create_default_config(config_path=config_path, home=home)
        print(f"Creating config file at {config_path}")

    return Config.from_dict(data=toml.loads(s=config_path.read_text()))


def write_to_config(config: Config, config_path: Path) -> None:
    """Write config to config_path."""
    config_path.write_text(data=toml.dumps(o=config.to_dict()))
    logger.info(msg=f"Wrote configuration to {config_path}")


class Configuration:
    """A class to handle command line arguments, logging and the config file."""

    def __init__(self, arguments: list[str], home: str) -> None:
        """Initialize the configuration.

        Args:
            arguments: Command line arguments
            home: Value of $HOME
        """
        self.home: str = home
        args: argparse.Namespace = self._parse_arguments(arguments)
        self._setup_logging(args)
        self._handle_special_arguments(args)
        self._load_configuration(args)

    def _parse_arguments(self, arguments: list[str]) -> argparse.Namespace:
        """Parse command line arguments.

        Args:
            arguments: Command line arguments

        Returns:
            Parsed arguments namespace
        """
        arg_parser = argparse.ArgumentParser(
            description="A terminal browser for OPDS catalogs."
        )
        config_file_location: Path = Path(self.home) / CONFIG_DIRECTORY / "config.toml"

        arg_parser.add_argument(
            "--config",
            dest="config",
            help="Path to the config file",
            default=config_file_location,
        )
        arg_parser.add_argument(
            "--create-config",
            dest="create_config",
            help="Create a default configuration file at the specified path",
            metavar="PATH",
        )
        arg_parser.add_argument(
            "--version",
            action="store_true",
            dest="version",
            help="Show version and exit",
            default=False,
        )
        arg_parser.add_argument(
            "--debug",
            action="store_true",
            dest="debug",
            help="Enable debug logging",
            default=False,
        )
        arg_parser.add_argument(
            "--info",
            action="store_true",
            dest="info",
            help="Enable info logging",
            default=False,
        )
        arg_parser.add_argument(
            "--error",
            action="store_true",
            dest="error",
            help="Enable error logging",
            default=False,
        )
        arg_parser.add_argument(
            "--log-file",
            dest="opdscli_log",
            help="Path to the log file",
            default="opdscli.log",
        )

        return arg_parser.parse_args(args=arguments)

    def _setup_logging(self, args: argparse.Namespace) -> None:
        """Set up logging configuration.

        Args:
            args: Parsed command line arguments
        """
        if not args.debug and not args.info and not args.error:
            args.opdscli_log = "/dev/null"

        log_level = (
            logging.ERROR
            if args.error
            else (logging.DEBUG if args.debug else logging.INFO)
        )

        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[
                logging.FileHandler(filename=args.opdscli_log),
            ],
        )

        if args.debug:
            logger.debug(msg="Debug logging enabled")
        elif args.info:
            logger.info(msg="Info logging enabled")

    def _handle_special_arguments(self, args: argparse.Namespace) -> None:
        """Handle version and create-config arguments that exit immediately.

        Args:
            args: Parsed command line arguments
        """
        if args.version:
            try:
                version: str = metadata.version(distribution_name="opdscli")
                print(f"opdscli version: {version}")
                sys.exit(0)
            except metadata.PackageNotFoundError as e:
                print(f"Error getting version: {e}")
                sys.exit(1)

        if args.create_config:
            create_default_config(config_path=Path(args.create_config), home=self.home)
            print(f"Created default configuration at: {args.create_config}")
            sys.exit(0)

    def _load_configuration(self, args: argparse.Namespace) -> None:
        """Load the configuration file and check the download directory.

        Args:
            args: Parsed command line arguments

        Raises:
            SystemExit: If the config file cannot be used
        """
        self.config_path = Path(args.config)
        try:
            self.config: Config = read_config(config_path=self.config_path, home=self.home)
            self.download_directory: str = directory_str_to_url(
                directory=self.config.download_directory
            )
        except (OSError, KeyError, ValueError, TypeError, toml.TomlDecodeError) as err:
            logger.error(msg=f"Error reading configuration file: {err}")
            print(f"Error reading configuration file: {err}")
            sys.exit(1)
