from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from conan_repo.domain.models import RepositoryConfig
from conan_repo.storage.base import Storage
from conan_repo.storage.file_storage import FileStorage
from conan_repo.storage.memory import InMemoryStorage

logger = logging.getLogger(__name__)

DATA_ROOT_ENV_VAR = "CONAN_REPO_DATA_DIR"

# Resolve repository root (project root, not the Python package root)
_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_DATA_DIR = _REPO_ROOT / "data"


_data_dir: Optional[Path] = None
_repository_config: Optional[RepositoryConfig] = None
_storage: Optional[Storage] = None


def get_data_dir() -> Path:
    """
    Determine the data directory path.

    Priority:
    1. Environment variable CONAN_REPO_DATA_DIR
    2. '<workspace root>/data'
    """
    global _data_dir
    if _data_dir is None:
        env_path = os.environ.get(DATA_ROOT_ENV_VAR)
        if env_path:
            _data_dir = Path(env_path).expanduser()
        else:
            _data_dir = _DEFAULT_DATA_DIR

        _data_dir.mkdir(parents=True, exist_ok=True)
    return _data_dir


def _config_path() -> Path:
    return get_data_dir() / "repository.json"


def load_repository_config() -> RepositoryConfig:
    """
    Load repository.json, merging with defaults for any missing fields,
    and write it back so any new fields are persisted.
    """
    path = _config_path()
    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            config = RepositoryConfig(**raw)
        except Exception as e:
            # If parsing fails, fall back to defaults and overwrite file.
            logger.warning(f"Invalid {path}, using defaults: {e}")
            config = RepositoryConfig()
    else:
        config = RepositoryConfig()

    path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
    return config


def get_repository_config() -> RepositoryConfig:
    global _repository_config
    if _repository_config is None:
        _repository_config = load_repository_config()
    return _repository_config


def create_storage(config: RepositoryConfig) -> Storage:
    if config.storage_backend == "memory":
        logger.info("Using in-memory storage; repository content is not persisted")
        return InMemoryStorage()
    root = get_data_dir() / config.storage_subdir
    logger.info(f"Using file storage at {root}")
    return FileStorage(root)


def get_storage() -> Storage:
    global _storage
    if _storage is None:
        _storage = create_storage(get_repository_config())
    return _storage


def reset() -> None:
    """
    Forget the cached data directory, configuration and storage.
    """
    global _data_dir, _repository_config, _storage
    _data_dir = None
    _repository_config = None
    _storage = None
