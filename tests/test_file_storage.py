import os

import aiofiles.os
import pytest

from conan_repo.core.errors import NotFoundError
from conan_repo.data.package_list import PackageList
from conan_repo.data.revisions_index import RevisionsIndex
from conan_repo.storage.file_storage import FileStorage

from tests.conftest import ZLIB_FILES


async def test_save_and_read_back(file_storage):
    await file_storage.save("a/b/c.txt", b"hello")
    assert await file_storage.exists("a/b/c.txt")
    assert await file_storage.value("a/b/c.txt") == b"hello"
    assert (file_storage.root / "a" / "b" / "c.txt").read_bytes() == b"hello"


async def test_overwrite_replaces_content(file_storage):
    await file_storage.save("k.txt", b"old")
    await file_storage.save("k.txt", b"new")
    assert await file_storage.value("k.txt") == b"new"
    assert [p.name for p in file_storage.root.iterdir()] == ["k.txt"]


async def test_missing_key(file_storage):
    assert not await file_storage.exists("nope.txt")
    with pytest.raises(NotFoundError):
        await file_storage.value("nope.txt")
    with pytest.raises(NotFoundError):
        await file_storage.delete("nope.txt")


async def test_directory_is_not_a_value(file_storage):
    await file_storage.save("dir/file.txt", b"x")
    assert not await file_storage.exists("dir")
    with pytest.raises(NotFoundError):
        await file_storage.value("dir")


async def test_list_is_sorted_and_scoped(file_storage):
    for name in reversed(ZLIB_FILES):
        await file_storage.save(name, b"x")
    await file_storage.save("zlib/1.2.11/_/_/0/packages/other.txt", b"x")

    keys = await file_storage.list("zlib/1.2.11/_/_/0/export")
    assert keys == sorted(k for k in ZLIB_FILES if "/0/export/" in k)
    assert await file_storage.list("") == sorted(ZLIB_FILES + ["zlib/1.2.11/_/_/0/packages/other.txt"])
    assert await file_storage.list("missing/prefix") == []
    assert await file_storage.list("zlib/1.2.11/_/_/revisions.txt") == ["zlib/1.2.11/_/_/revisions.txt"]


async def test_list_skips_partial_writes(file_storage):
    await file_storage.save("a/file.txt", b"x")
    (file_storage.root / "a" / ".file.txt.0123.part").write_bytes(b"partial")
    assert await file_storage.list("a") == ["a/file.txt"]


async def test_delete_prunes_empty_directories(file_storage):
    await file_storage.save("a/b/c.txt", b"x")
    await file_storage.save("a/d.txt", b"x")
    await file_storage.delete("a/b/c.txt")
    assert not (file_storage.root / "a" / "b").exists()
    assert (file_storage.root / "a" / "d.txt").exists()
    assert file_storage.root.exists()


@pytest.mark.parametrize("key", ["../escape.txt", "a/../../b", "a//b", "./a"])
async def test_rejects_unsafe_keys(file_storage, key):
    with pytest.raises(ValueError):
        await file_storage.save(key, b"x")


async def test_revisions_index_on_disk(tmp_path):
    storage = FileStorage(tmp_path)
    index = RevisionsIndex(storage)
    key = "zlib/1.2.11/_/_/revisions.txt"
    for rev in (2, 0, 1):
        await index.add_to_revdata(rev, key)
    await index.remove_revision(1, key)

    assert (tmp_path / "zlib" / "1.2.11" / "_" / "_" / "revisions.txt").read_text() == "0\n2\n"
    assert await index.get_last_rev(key) == 2


async def test_package_list_on_disk(file_storage):
    for name in ZLIB_FILES:
        await file_storage.save(name, b"x")
    packages = PackageList(file_storage)
    assert await packages.get("zlib/1.2.11/_/_/0/package") == [
        "dfbe50feef7f3c6223a476cd5aeadb687084a646"
    ]


async def test_save_recovers_when_parent_is_pruned(file_storage, monkeypatch):
    real_makedirs = aiofiles.os.makedirs
    calls = []

    async def makedirs_then_prune(path, exist_ok=False):
        await real_makedirs(path, exist_ok=exist_ok)
        calls.append(path)
        if len(calls) == 1:
            # Same effect as a concurrent delete emptying and pruning the directory.
            os.rmdir(path)

    monkeypatch.setattr(aiofiles.os, "makedirs", makedirs_then_prune)
    await file_storage.save("a/b/c.txt", b"x")

    assert len(calls) == 2
    assert await file_storage.value("a/b/c.txt") == b"x"
