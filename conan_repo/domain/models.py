from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from conan_repo.domain.conan_utils import EMPTY_FIELD, is_valid_name_segment


class RepositoryConfig(BaseModel):
    """
    Top-level configuration describing the repository itself.
    Persisted at: <DATA_DIR>/repository.json
    """

    source_identifier: str = Field(
        default="python-conan-repo",
        description="Unique identifier for this repository instance.",
    )
    server_capabilities: List[str] = Field(
        default_factory=lambda: ["complex_search", "revisions"],
        description="Capabilities advertised in the X-Conan-Server-Capabilities header.",
    )
    storage_backend: Literal["fs", "memory"] = Field(
        default="fs",
        description="Where repository files are kept: on disk below the data directory, or in memory.",
    )
    storage_subdir: str = Field(
        default="storage",
        description="Directory (relative to the data directory) used by the fs backend.",
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level applied at startup.",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when this repository configuration was first created.",
    )


class ConanReference(BaseModel):
    """
    A recipe reference: name/version@user/channel.

    Missing user and channel are stored as "_", which is also how they appear
    in repository paths.
    """

    name: str
    version: str
    user: str = EMPTY_FIELD
    channel: str = EMPTY_FIELD

    @field_validator("name", "version", "user", "channel")
    @classmethod
    def _check_segment(cls, value: str) -> str:
        if not is_valid_name_segment(value):
            raise ValueError(f"Invalid reference component: {value!r}")
        return value

    @property
    def path(self) -> str:
        return f"{self.name}/{self.version}/{self.user}/{self.channel}"

    def __str__(self) -> str:
        if self.user == EMPTY_FIELD and self.channel == EMPTY_FIELD:
            return f"{self.name}/{self.version}"
        return f"{self.name}/{self.version}@{self.user}/{self.channel}"


class RevisionInfo(BaseModel):
    revision: str
    time: Optional[datetime] = None


class RevisionsResponse(BaseModel):
    reference: str
    revisions: List[RevisionInfo] = Field(default_factory=list)
