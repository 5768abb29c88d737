"""Filesystem helpers for opdscli."""

import logging
import os
import subprocess
import sys
from pathlib import Path

import filetype

from ..errors import SaveError
from .url import file_url_to_path

logger: logging.Logger = logging.getLogger(name=__name__)


class Mobi(filetype.Type):
    """Mobipocket e-book, identified by BOOKMOBI at offset 60."""

    MIME = "application/x-mobipocket-ebook"
    EXTENSION = "mobi"

    def __init__(self) -> None:
        super().__init__(mime=Mobi.MIME, extension=Mobi.EXTENSION)

    def match(self, buf) -> bool:
        return len(buf) >= 68 and bytes(buf[60:68]) == b"BOOKMOBI"


filetype.add_type(Mobi())


def safe_filename(filename: str) -> str:
    """Reduce a server supplied filename to its final component.

    Raises:
        SaveError: If nothing usable is left
    """
    name: str = Path(filename.replace("\\", "/")).name
    if name in ("", ".", ".."):
        raise SaveError(f"Could not save {filename}. Invalid file name.")
    return name


def read_dir(url: str) -> list[str]:
    """Return the names inside a directory, in filesystem enumeration order.

    Args:
        url: file:// URL pointing at a directory

    Returns:
        List of entry names

    Raises:
        OSError: If the directory cannot be read
    """
    return os.listdir(path=file_url_to_path(url=url))


def sniff_extension(data: bytes) -> str | None:
    """Guess a file extension from the magic bytes of data."""
    kind = filetype.guess(obj=data)
    if kind is None:
        return None
    return kind.extension


def save_as(data: bytes, directory: str, filename: str) -> Path:
    """Save bytes as filename inside directory.

    Only the final component of filename is used, so the file always lands in directory.
    The extension of filename must match the type given by the magic bytes of the data,
    otherwise nothing is written.

    Args:
        data: File contents
        directory: file:// URL of the directory to save in
        filename: Name of the file

    Returns:
        Path of the written file

    Raises:
        SaveError: If the name is unusable, the data does not match the extension or
            the type is unknown
        OSError: If the file cannot be written
    """
    filename = safe_filename(filename=filename)
    full_path: Path = file_url_to_path(url=directory) / filename
    extension: str = full_path.suffix.removeprefix(".")
    sniffed: str | None = sniff_extension(data=data)

    if sniffed is None:
        raise SaveError(
            f"Could not save {filename}. The file type could not be determined."
        )

    if sniffed != extension:
        raise SaveError(
            f"Could not save {filename}. File was not downloaded properly. "
            f"File was returned from the server as a {sniffed}"
        )

    full_path.write_bytes(data)
    logger.info(msg=f"Saved {len(data)} bytes to {full_path}")
    return full_path


def rename_full_dir_fname(old_path: Path, new_path: Path) -> Path:
    """Rename old_path to the filename in new_path, keeping the parent directory.

    Args:
        old_path: Path to the file or directory to rename
        new_path: New name, only the final component is used

    Returns:
        The new path
    """
    target: Path = Path(old_path).parent / Path(new_path).name
    Path(old_path).rename(target=target)
    logger.info(msg=f"Renamed {old_path} to {target}")
    return target


def delete_path(url: str) -> None:
    """Delete the file or (empty) directory at a file URL."""
    path: Path = file_url_to_path(url=url)
    if path.is_dir():
        path.rmdir()
    else:
        path.unlink()
    logger.info(msg=f"Deleted {path}")


def open_with_default_application(url: str) -> None:
    """Open a file URL using the OS mime-type handler."""
    path: Path = file_url_to_path(url=url)
    if not path.exists():
        raise FileNotFoundError(f"{path} does not exist.")

    if sys.platform == "win32":
        os.startfile(path)  # type: ignore[attr-defined]
    elif sys.platform == "darwin":
        subprocess.Popen(
            ["open", str(path)], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
        )
    else:  # Linux and other Unix-like
        subprocess.Popen(
            ["xdg-open", str(path)], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
        )
    logger.info(msg=f"Opened {path}")
