from conan_repo.data.package_list import PackageList
from conan_repo.storage.memory import InMemoryStorage

ZLIB_SRC_PKG = "zlib/1.2.11/_/_"


async def test_empty_storage_lists_nothing(storage):
    packages = PackageList(storage)
    assert await packages.get(f"{ZLIB_SRC_PKG}/exports") == []


async def test_lists_binary_package_id(zlib_storage):
    packages = PackageList(zlib_storage)
    assert await packages.get(f"{ZLIB_SRC_PKG}/0/package") == [
        "dfbe50feef7f3c6223a476cd5aeadb687084a646"
    ]


async def test_single_package_from_two_files():
    storage = InMemoryStorage({
        "a/0/package/H1/0/conaninfo.txt": b"",
        "a/0/package/H1/0/conanmanifest.txt": b"",
    })
    assert await PackageList(storage).get("a/0/package") == ["H1"]


async def test_distinct_ids_in_listing_order():
    storage = InMemoryStorage({
        "a/0/package/H2/0/conaninfo.txt": b"",
        "a/0/package/H1/1/conaninfo.txt": b"",
        "a/0/package/H1/0/conaninfo.txt": b"",
        "a/0/package/H3/revisions.txt": b"0\n",
        "a/0/package/H2/revisions.txt": b"0\n",
    })
    packages = PackageList(storage)
    first = await packages.get("a/0/package")
    assert first == ["H1", "H2", "H3"]
    assert await packages.get("a/0/package") == first


async def test_sibling_with_common_prefix_is_ignored():
    storage = InMemoryStorage({
        "a/0/package/H1/0/conaninfo.txt": b"",
        "a/0/packages/H9/0/conaninfo.txt": b"",
        "a/0/package.bak": b"",
    })
    assert await PackageList(storage).get("a/0/package") == ["H1"]


async def test_key_equal_to_prefix_is_ignored():
    storage = InMemoryStorage({
        "a/0/export": b"",
    })
    assert await PackageList(storage).get("a/0/export") == []


async def test_export_listing_includes_files():
    storage = InMemoryStorage({
        "a/0/export/conanfile.py": b"",
        "a/0/export/conanmanifest.txt": b"",
    })
    assert await PackageList(storage).get("a/0/export/") == ["conanfile.py", "conanmanifest.txt"]


async def test_listing_does_not_modify_storage(zlib_storage):
    before = await zlib_storage.list("")
    await PackageList(zlib_storage).get(f"{ZLIB_SRC_PKG}/0/package")
    assert await zlib_storage.list("") == before


async def test_empty_prefix_lists_top_level(zlib_storage):
    assert await PackageList(zlib_storage).get("") == ["zlib"]
