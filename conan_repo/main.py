import logging

from fastapi import FastAPI

from conan_repo import __version__
from conan_repo.api.conan import router as conan_router
from conan_repo.data.repository import get_repository_config, get_storage

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Python Conan Repository",
    version=__version__,
    description="FastAPI-based Conan repository serving revision indexes from a key-value storage.",
)


@app.on_event("startup")
async def startup_event() -> None:
    """
    Load repository.json, apply the configured log level and open the storage backend.
    """
    config = get_repository_config()
    logging.getLogger().setLevel(config.log_level.upper())
    get_storage()
    logger.info(f"Repository {config.source_identifier} ready")


@app.get("/health")
async def health() -> dict:
    """
    Lightweight health check endpoint.
    """
    return {"status": "ok"}


app.include_router(conan_router, tags=["conan"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "conan_repo.main:app",
        host="0.0.0.0",
        port=9300,
        reload=True,
    )
