"""Line-oriented domain and nameserver list readers."""

from pathlib import Path
from typing import Iterable, List, Union

from .errors import ConfigurationError, ErrorCodes


def clean_lines(lines: Iterable[str]) -> List[str]:
    """Strip whitespace, drop blank lines and ``#`` comments."""
    return [
        line.strip()
        for line in lines
        if line.strip() and not line.strip().startswith("#")
    ]


def read_list(filepath: Union[str, Path]) -> List[str]:
    """
    Read a list of entries (one per line) from a text file.

    Raises:
        ConfigurationError: If the file is missing or unreadable.
    """
    path = Path(filepath)
    if not path.exists():
        raise ConfigurationError(
            f"{path}", error=ErrorCodes.CONFIG_FILE_NOT_FOUND
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            return clean_lines(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e


def read_nameservers(filepath: Union[str, Path]) -> List[str]:
    """Read nameserver hosts, rejecting an empty list."""
    nameservers = read_list(filepath)
    if not nameservers:
        raise ConfigurationError(
            f"No nameservers in {filepath}", error=ErrorCodes.CONFIG_NO_NAMESERVERS
        )
    return nameservers
