"""
Shared fixtures for the repository tests.
"""

import asyncio
import random

import pytest

from conan_repo.core.errors import StorageIOError
from conan_repo.data.revisions_index import RevisionsIndex
from conan_repo.storage.file_storage import FileStorage
from conan_repo.storage.memory import InMemoryStorage


# Files of the zlib/1.2.11 recipe as laid out by a Conan server.
ZLIB_FILES = [
    "zlib/1.2.11/_/_/0/package/dfbe50feef7f3c6223a476cd5aeadb687084a646/0/conaninfo.txt",
    "zlib/1.2.11/_/_/0/package/dfbe50feef7f3c6223a476cd5aeadb687084a646/0/conan_package.tgz",
    "zlib/1.2.11/_/_/0/package/dfbe50feef7f3c6223a476cd5aeadb687084a646/0/conanmanifest.txt",
    "zlib/1.2.11/_/_/0/package/dfbe50feef7f3c6223a476cd5aeadb687084a646/revisions.txt",
    "zlib/1.2.11/_/_/0/export/conan_export.tgz",
    "zlib/1.2.11/_/_/0/export/conanfile.py",
    "zlib/1.2.11/_/_/0/export/conanmanifest.txt",
    "zlib/1.2.11/_/_/0/export/conan_sources.tgz",
    "zlib/1.2.11/_/_/revisions.txt",
]


class JitterStorage(InMemoryStorage):
    """In-memory storage that yields for a random moment on every read and write."""

    async def value(self, key):
        await asyncio.sleep(random.random() / 1000)
        return await super().value(key)

    async def save(self, key, data):
        await asyncio.sleep(random.random() / 1000)
        await super().save(key, data)


class FailingSaveStorage(InMemoryStorage):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_saves = False

    async def save(self, key, data):
        if self.fail_saves:
            raise OSError("disk full")
        await super().save(key, data)


class FailingReadStorage(InMemoryStorage):
    """Storage whose reads fail while `fail_reads` is set; records every save."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_reads = False
        self.saved_keys = []

    async def value(self, key):
        if self.fail_reads:
            raise StorageIOError(key, "read timed out")
        return await super().value(key)

    async def save(self, key, data):
        self.saved_keys.append(key)
        await super().save(key, data)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def index(storage):
    return RevisionsIndex(storage)


@pytest.fixture
def zlib_storage():
    initial = {}
    for name in ZLIB_FILES:
        if name.endswith("revisions.txt"):
            initial[name] = b"0\n"
        else:
            initial[name] = f"content of {name}".encode("utf-8")
    return InMemoryStorage(initial)


@pytest.fixture
def file_storage(tmp_path):
    return FileStorage(tmp_path / "storage")
