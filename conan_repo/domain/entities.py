from typing import List, Optional
import fnmatch
import logging

from pydantic import ValidationError

from conan_repo.core.errors import NotFoundError
from conan_repo.data.package_list import PackageList
from conan_repo.data.revisions_index import RevisionsIndex
from conan_repo.domain.conan_utils import (
    CONANINFO_FILE,
    EXPORT_DIR,
    PACKAGE_DIR,
    REVISIONS_FILE,
    is_valid_name_segment,
    join_key,
)
from conan_repo.domain.models import ConanReference
from conan_repo.storage.base import Storage

logger = logging.getLogger(__name__)


class Recipe:
    """
    One recipe reference in the repository and the keys derived from it.

    Layout below the reference path:
        revisions.txt                               recipe revision index
        <rrev>/export/...                           recipe files
        <rrev>/package/<pkg_id>/revisions.txt       package revision index
        <rrev>/package/<pkg_id>/<prev>/...          package files
    """

    def __init__(self, ref: ConanReference, repo: "ConanRepository"):
        self.ref = ref
        self.repo = repo

    @property
    def revisions_key(self) -> str:
        return join_key(self.ref.path, REVISIONS_FILE)

    def export_key(self, rrev: int) -> str:
        return join_key(self.ref.path, rrev, EXPORT_DIR)

    def packages_key(self, rrev: int) -> str:
        return join_key(self.ref.path, rrev, PACKAGE_DIR)

    def package_revisions_key(self, rrev: int, package_id: str) -> str:
        if not is_valid_name_segment(package_id):
            raise ValueError(f"Invalid package id: {package_id!r}")
        return join_key(self.packages_key(rrev), package_id, REVISIONS_FILE)

    async def revisions(self) -> List[int]:
        return await self.repo.index.get_revisions(self.revisions_key)

    async def latest_revision(self) -> Optional[int]:
        rev = await self.repo.index.get_last_rev(self.revisions_key)
        return rev if rev >= 0 else None

    async def add_revision(self, rrev: int) -> None:
        await self.repo.index.add_to_revdata(rrev, self.revisions_key)
        logger.info(f"Registered recipe revision {self.ref}#{rrev}")

    async def remove_revision(self, rrev: int) -> None:
        await self.repo.index.remove_revision(rrev, self.revisions_key)
        logger.info(f"Removed recipe revision {self.ref}#{rrev}")

    async def binary_packages(self, rrev: int) -> List[str]:
        return await self.repo.packages.get(self.packages_key(rrev))

    async def export_files(self, rrev: int) -> List[str]:
        """
        Names of the files of a recipe revision, relative to its export directory.
        """
        return await self.repo.files_under(self.export_key(rrev))

    def package_key(self, rrev: int, package_id: str, prev: int) -> str:
        if not is_valid_name_segment(package_id):
            raise ValueError(f"Invalid package id: {package_id!r}")
        return join_key(self.packages_key(rrev), package_id, prev)

    async def package_files(self, rrev: int, package_id: str, prev: int) -> List[str]:
        return await self.repo.files_under(self.package_key(rrev, package_id, prev))

    async def package_info(self, rrev: int, package_id: str, prev: Optional[int] = None) -> str:
        """
        Content of conaninfo.txt for a binary package, from the given or the latest
        package revision. Raises NotFoundError when there is none.
        """
        if prev is None:
            prev = await self.latest_package_revision(rrev, package_id)
            if prev is None:
                raise NotFoundError(self.package_revisions_key(rrev, package_id))
        data = await self.repo.storage.value(join_key(self.package_key(rrev, package_id, prev), CONANINFO_FILE))
        return data.decode("utf-8", errors="replace")

    async def package_revisions(self, rrev: int, package_id: str) -> List[int]:
        return await self.repo.index.get_revisions(self.package_revisions_key(rrev, package_id))

    async def latest_package_revision(self, rrev: int, package_id: str) -> Optional[int]:
        rev = await self.repo.index.get_last_rev(self.package_revisions_key(rrev, package_id))
        return rev if rev >= 0 else None

    async def add_package_revision(self, rrev: int, package_id: str, prev: int) -> None:
        await self.repo.index.add_to_revdata(prev, self.package_revisions_key(rrev, package_id))
        logger.info(f"Registered package revision {self.ref}#{rrev}:{package_id}#{prev}")

    async def remove_package_revision(self, rrev: int, package_id: str, prev: int) -> None:
        await self.repo.index.remove_revision(prev, self.package_revisions_key(rrev, package_id))
        logger.info(f"Removed package revision {self.ref}#{rrev}:{package_id}#{prev}")


class ConanRepository:
    def __init__(self, storage: Storage):
        self.storage = storage
        self.index = RevisionsIndex(storage)
        self.packages = PackageList(storage)

    def get_recipe(self, ref: ConanReference) -> Recipe:
        return Recipe(ref, self)

    async def files_under(self, prefix: str) -> List[str]:
        """
        Keys below the prefix, relative to it.
        """
        keys = await self.storage.list(prefix)
        return [key[len(prefix) + 1:] for key in keys if key.startswith(prefix + "/")]

    async def search_recipes(self, pattern: Optional[str] = None) -> List[ConanReference]:
        """
        References that have a recipe revision index, optionally filtered by a
        case-insensitive glob over the reference string (e.g. "zlib*").
        """
        refs: List[ConanReference] = []
        for key in await self.storage.list(""):
            parts = key.split("/")
            if len(parts) != 5 or parts[4] != REVISIONS_FILE:
                continue
            try:
                ref = ConanReference(name=parts[0], version=parts[1], user=parts[2], channel=parts[3])
            except ValidationError:
                logger.warning(f"Skipping index with invalid reference path: {key}")
                continue
            if pattern and not fnmatch.fnmatchcase(str(ref).lower(), pattern.lower()):
                continue
            refs.append(ref)
        return refs
