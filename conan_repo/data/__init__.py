"""
Metadata indexing for the Conan repository.

This package is responsible for:
* Determining the data directory and loading repository configuration.
* Creating the storage backend the repository files live in.
* Maintaining revision indexes (revisions.txt) under storage keys.
* Listing binary packages stored below a recipe revision.
"""

from conan_repo.data.package_list import PackageList
from conan_repo.data.revisions_index import RevisionsIndex

__all__ = ["PackageList", "RevisionsIndex"]
