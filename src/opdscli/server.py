"""Server records and password storage for opdscli."""

import logging
from dataclasses import dataclass
from typing import Any

import keyring

from .errors import PasswordNotFound
from .utils.url import get_domain

logger: logging.Logger = logging.getLogger(name=__name__)

KEYRING_SERVICE = "opdscli"


@dataclass(frozen=True)
class Server:
    """An OPDS catalog.

    base_url is the URL of the catalog, NOT just the domain, i.e. https://example.com/opds
    """

    base_url: str
    username: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Server":
        """Build a server from a [servers.<name>] table of the config file."""
        if "base_url" not in data:
            raise KeyError("base_url")
        return cls(base_url=str(data["base_url"]), username=data.get("username") or None)

    def to_dict(self) -> dict[str, str]:
        """Serialize the server for the config file."""
        data: dict[str, str] = {"base_url": self.base_url}
        if self.username:
            data["username"] = self.username
        return data

    @property
    def keyring_key(self) -> str:
        """Key of the password entry in the keyring."""
        return f"{self.username}@{self.base_url}"

    def domain(self) -> str:
        """Return scheme + host of the catalog, used to resolve relative links."""
        return get_domain(url=self.base_url)

    def get_password(self) -> str | None:
        """Retrieve the password for this server from the system keyring.

        Servers without usernames do not have passwords.

        Returns:
            The password, or None if no username is set or the stored password is empty

        Raises:
            PasswordNotFound: If the keyring has no entry for the server
            keyring.errors.KeyringError: On keyring backend failures
        """
        if not self.username:
            return None

        password: str | None = keyring.get_password(
            service_name=KEYRING_SERVICE, username=self.keyring_key
        )
        if password is None:
            raise PasswordNotFound(f"No password stored for {self.keyring_key}")
        if not password:
            return None
        return password

    def __str__(self) -> str:
        return f"URL: {self.base_url}\n USER: {self.username}\n"


def store_password(server: Server, password: str | None) -> None:
    """Store a password for a server in the system keyring.

    Nothing is stored unless the server has a username and a password is given.
    """
    if password is None or not server.username:
        return

    keyring.set_password(
        service_name=KEYRING_SERVICE, username=server.keyring_key, password=password
    )
    logger.info(msg=f"Stored password for {server.keyring_key} in keyring")
