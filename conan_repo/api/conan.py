from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from conan_repo.core.dependencies import get_config, get_repository
from conan_repo.core.errors import CorruptIndexError, NotFoundError, StorageIOError
from conan_repo.domain.conan_utils import EMPTY_FIELD, is_valid_name_segment, parse_revision
from conan_repo.domain.entities import ConanRepository, Recipe
from conan_repo.domain.models import (
    ConanReference,
    RepositoryConfig,
    RevisionInfo,
    RevisionsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()

CAPABILITIES_HEADER = "X-Conan-Server-Capabilities"
REF_PATH = "/v2/conans/{name}/{version}/{user}/{channel}"


@contextmanager
def _repository_errors() -> Iterator[None]:
    """
    Translate repository and storage failures into HTTP errors.
    """
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CorruptIndexError as e:
        logger.error(f"Corrupt revision index: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except StorageIOError as e:
        logger.error(f"Storage failure: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def get_recipe(
    name: str,
    version: str,
    user: str,
    channel: str,
    repo: ConanRepository = Depends(get_repository),
) -> Recipe:
    try:
        ref = ConanReference(name=name, version=version, user=user or EMPTY_FIELD, channel=channel or EMPTY_FIELD)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid reference: {e.errors()[0]['msg']}")
    return repo.get_recipe(ref)


def _revision(value: str) -> int:
    try:
        return parse_revision(value)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _package_id(value: str) -> str:
    if not is_valid_name_segment(value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid package id: {value!r}")
    return value


def _revisions_response(reference: str, revisions: List[int]) -> dict:
    # Clients expect the newest revision first.
    body = RevisionsResponse(
        reference=reference,
        revisions=[RevisionInfo(revision=str(r)) for r in reversed(revisions)],
    )
    return body.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Server capabilities
# ---------------------------------------------------------------------------

@router.get("/v1/ping")
async def ping(config: RepositoryConfig = Depends(get_config)) -> Response:
    return Response(
        status_code=status.HTTP_202_ACCEPTED,
        headers={CAPABILITIES_HEADER: ",".join(config.server_capabilities)},
    )


# ---------------------------------------------------------------------------
# Recipe search
# ---------------------------------------------------------------------------

@router.get("/v2/conans/search")
async def search_recipes(q: Optional[str] = None, repo: ConanRepository = Depends(get_repository)) -> dict:
    with _repository_errors():
        refs = await repo.search_recipes(q)
    return {"results": [str(ref) for ref in refs]}


# ---------------------------------------------------------------------------
# Recipe revisions
# ---------------------------------------------------------------------------

@router.get(REF_PATH + "/revisions")
async def recipe_revisions(recipe: Recipe = Depends(get_recipe)) -> dict:
    with _repository_errors():
        revisions = await recipe.revisions()
    return _revisions_response(str(recipe.ref), revisions)


@router.get(REF_PATH + "/latest")
async def recipe_latest(recipe: Recipe = Depends(get_recipe)) -> dict:
    with _repository_errors():
        latest = await recipe.latest_revision()
    if latest is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Recipe not found: {recipe.ref}")
    return RevisionInfo(revision=str(latest)).model_dump(mode="json")


@router.delete(REF_PATH + "/revisions/{rrev}")
async def delete_recipe_revision(rrev: str, recipe: Recipe = Depends(get_recipe)) -> Response:
    rev = _revision(rrev)
    with _repository_errors():
        await recipe.remove_revision(rev)
    return Response(status_code=status.HTTP_200_OK)


@router.get(REF_PATH + "/revisions/{rrev}/files")
async def recipe_files(rrev: str, recipe: Recipe = Depends(get_recipe)) -> dict:
    rev = _revision(rrev)
    with _repository_errors():
        files = await recipe.export_files(rev)
    if not files:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Recipe not found: {recipe.ref}#{rev}")
    return {"files": {name: {} for name in files}}


# ---------------------------------------------------------------------------
# Binary packages
# ---------------------------------------------------------------------------

@router.get(REF_PATH + "/revisions/{rrev}/search")
async def search_packages(rrev: str, recipe: Recipe = Depends(get_recipe)) -> Dict[str, dict]:
    rev = _revision(rrev)
    with _repository_errors():
        package_ids = await recipe.binary_packages(rev)
    return {package_id: {} for package_id in package_ids}


@router.get(REF_PATH + "/revisions/{rrev}/packages/{package_id}/revisions")
async def package_revisions(rrev: str, package_id: str, recipe: Recipe = Depends(get_recipe)) -> dict:
    rev = _revision(rrev)
    pkg = _package_id(package_id)
    with _repository_errors():
        revisions = await recipe.package_revisions(rev, pkg)
    return _revisions_response(f"{recipe.ref}#{rev}:{pkg}", revisions)


@router.get(REF_PATH + "/revisions/{rrev}/packages/{package_id}/latest")
async def package_latest(rrev: str, package_id: str, recipe: Recipe = Depends(get_recipe)) -> dict:
    rev = _revision(rrev)
    pkg = _package_id(package_id)
    with _repository_errors():
        latest = await recipe.latest_package_revision(rev, pkg)
    if latest is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Package not found: {recipe.ref}#{rev}:{pkg}",
        )
    return RevisionInfo(revision=str(latest)).model_dump(mode="json")


@router.delete(REF_PATH + "/revisions/{rrev}/packages/{package_id}/revisions/{prev}")
async def delete_package_revision(
    rrev: str,
    package_id: str,
    prev: str,
    recipe: Recipe = Depends(get_recipe),
) -> Response:
    rev = _revision(rrev)
    pkg = _package_id(package_id)
    package_rev = _revision(prev)
    with _repository_errors():
        await recipe.remove_package_revision(rev, pkg, package_rev)
    return Response(status_code=status.HTTP_200_OK)


@router.get(REF_PATH + "/revisions/{rrev}/packages/{package_id}/revisions/{prev}/files")
async def package_files(
    rrev: str,
    package_id: str,
    prev: str,
    recipe: Recipe = Depends(get_recipe),
) -> dict:
    rev = _revision(rrev)
    pkg = _package_id(package_id)
    package_rev = _revision(prev)
    with _repository_errors():
        files = await recipe.package_files(rev, pkg, package_rev)
    if not files:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Package not found: {recipe.ref}#{rev}:{pkg}#{package_rev}",
        )
    return {"files": {name: {} for name in files}}


@router.get(REF_PATH + "/revisions/{rrev}/packages/{package_id}/info")
async def package_info(rrev: str, package_id: str, recipe: Recipe = Depends(get_recipe)) -> PlainTextResponse:
    """
    conaninfo.txt of the latest revision of a binary package.
    """
    rev = _revision(rrev)
    pkg = _package_id(package_id)
    with _repository_errors():
        content = await recipe.package_info(rev, pkg)
    return PlainTextResponse(content)
