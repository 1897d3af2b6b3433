from abc import ABC, abstractmethod
from typing import List


class Storage(ABC):
    """
    Abstract base class for the key-value storage holding repository files.

    Keys are '/'-separated paths relative to the storage root, e.g.
    "zlib/1.2.11/_/_/revisions.txt".
    """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether a value is stored under the key."""
        pass

    @abstractmethod
    async def value(self, key: str) -> bytes:
        """Read the value stored under the key. Raises NotFoundError if absent."""
        pass

    @abstractmethod
    async def save(self, key: str, data: bytes) -> None:
        """Store the value under the key, replacing any previous value."""
        pass

    @abstractmethod
    async def list(self, prefix: str) -> List[str]:
        """
        List the keys located under the prefix, sorted lexicographically.

        A key is under the prefix when it equals the prefix or continues it
        with a '/' separator. An empty prefix lists every key.
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the value stored under the key. Raises NotFoundError if absent."""
        pass


def normalize_key(key: str) -> str:
    """
    Strip leading/trailing separators and validate the key segments.
    """
    key = key.strip("/")
    if not key:
        return ""
    for part in key.split("/"):
        if part in ("", ".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
    return key


def is_under(key: str, prefix: str) -> bool:
    if not prefix:
        return True
    return key == prefix or key.startswith(prefix + "/")
