from typing import Optional

from conan_repo.data.repository import get_repository_config, get_storage
from conan_repo.domain.entities import ConanRepository
from conan_repo.domain.models import RepositoryConfig

_repository: Optional[ConanRepository] = None


def get_repository() -> ConanRepository:
    global _repository
    if _repository is None:
        _repository = ConanRepository(get_storage())
    return _repository


def get_config() -> RepositoryConfig:
    return get_repository_config()


def reset_repository() -> None:
    global _repository
    _repository = None
