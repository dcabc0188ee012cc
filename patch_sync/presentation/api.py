"""
HTTP front-end for the patch sync service.

Endpoints for the quiz client and operators:

1) GET  /api/progress     -> live SyncStatus snapshot, polled by the
                             holding page every second.
2) GET  /api/startup      -> runs a sync to completion and reports it.
3) POST /api/admin/sync   -> starts a sync in the background (202).
4) GET  /api/patch        -> the installed patch version.
5) GET  /api/champions    -> champion data of the installed patch.

The extracted patch tree is served as static files under /patch-data, and
every other GET request gets the holding page until a patch is installed.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from ..application.domain import ChampionCatalog, SyncState, SyncStatus
from ..application.exceptions import CatalogError, StorageError
from ..application.service import SyncOrchestrator

from .holding_page import HOLDING_PAGE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Paths that are never replaced by the holding page.
_PASS_THROUGH_PREFIXES = ("/api/", "/patch-data/", "/docs", "/openapi.json")


# --- Response models ---

class ProgressResponse(BaseModel):
    progress: int
    isDownloading: bool
    message: str
    state: SyncState
    version: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_status(cls, snapshot: SyncStatus) -> "ProgressResponse":
        return cls(
            progress=snapshot.progress_percent,
            isDownloading=snapshot.is_downloading,
            message=snapshot.message,
            state=snapshot.state,
            version=snapshot.version,
            error=snapshot.error,
        )


class StartupResponse(BaseModel):
    message: str
    downloaded: bool
    progress: int
    isDownloading: bool
    state: SyncState
    version: Optional[str] = None


class PatchResponse(BaseModel):
    patch: Optional[str] = None


# --- Dependencies ---

def get_orchestrator(request: Request) -> SyncOrchestrator:
    return request.app.state.orchestrator


def get_catalog(request: Request) -> ChampionCatalog:
    return request.app.state.catalog


def _error(status_code: int, message: str, detail: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": message}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


# --- Routes ---

@router.get("/progress", response_model=ProgressResponse)
async def get_progress(orchestrator: SyncOrchestrator = Depends(get_orchestrator)):
    """Pure read of the live status; never triggers a sync."""
    return ProgressResponse.from_status(orchestrator.status.snapshot())


@router.get("/startup", response_model=StartupResponse)
async def startup_check(orchestrator: SyncOrchestrator = Depends(get_orchestrator)):
    """
    Check upstream and sync if needed, answering once the run is over.
    If a run is already active this reports it instead of waiting.
    """
    outcome = await orchestrator.run()
    snapshot = orchestrator.status.snapshot()

    if outcome.state is SyncState.FAILED:
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to check patch data",
            outcome.error,
        )

    if outcome.in_progress:
        message = "Patch data sync already in progress"
    elif outcome.downloaded:
        message = "Patch data updated successfully"
    else:
        message = "Patch data is up to date"

    return StartupResponse(
        message=message,
        downloaded=outcome.downloaded,
        progress=snapshot.progress_percent,
        isDownloading=snapshot.is_downloading,
        state=outcome.state,
        version=outcome.version,
    )


@router.post(
    "/admin/sync",
    response_model=ProgressResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def trigger_sync(orchestrator: SyncOrchestrator = Depends(get_orchestrator)):
    """Start a sync in the background; poll /api/progress for the result."""
    return ProgressResponse.from_status(orchestrator.start(force=True))


@router.get("/patch", response_model=PatchResponse)
async def get_patch(orchestrator: SyncOrchestrator = Depends(get_orchestrator)):
    try:
        return PatchResponse(patch=orchestrator.current_version())
    except StorageError as e:
        logger.error(f"Error reading installed patch version: {e}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to read patch version"
        )


@router.get("/champions")
async def get_champions(
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    catalog: ChampionCatalog = Depends(get_catalog),
):
    """Champion data of the installed patch, in the shape the quiz expects."""
    try:
        version = orchestrator.current_version()
    except StorageError as e:
        logger.error(f"Error reading installed patch version: {e}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch champion data"
        )

    if version is None:
        return _error(
            status.HTTP_503_SERVICE_UNAVAILABLE, "Patch data is not available yet"
        )

    try:
        champion_file = await catalog.load(version)
    except CatalogError as e:
        logger.error(f"Error fetching champion data: {e}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch champion data"
        )

    return {
        "data": {"data": champion_file["data"]},
        "type": champion_file["type"],
        "version": champion_file["version"],
        "local": True,
    }


# --- Application factory ---

async def _holding_page_middleware(request: Request, call_next):
    """Serve the holding page instead of app pages while no patch is usable."""
    orchestrator: SyncOrchestrator = request.app.state.orchestrator
    if (
        request.method == "GET"
        and "text/html" in request.headers.get("accept", "")
        and not request.url.path.startswith(_PASS_THROUGH_PREFIXES)
        and orchestrator.needs_holding_page()
    ):
        return HTMLResponse(HOLDING_PAGE, headers={"Cache-Control": "no-store"})
    return await call_next(request)


def create_app(
    orchestrator: SyncOrchestrator,
    catalog: ChampionCatalog,
    patch_root: Path,
    sync_on_startup: bool = True,
    frontend_dir: Optional[Path] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Builds the FastAPI application around an orchestrator.

    Args:
        orchestrator: The single SyncOrchestrator behind every trigger.
        catalog: Reader for installed champion data.
        patch_root: Directory served under /patch-data.
        sync_on_startup: Start a background sync when the server starts.
        frontend_dir: Optional directory of quiz client files served at /.
        http_client: Shared HTTP client, closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if sync_on_startup:
            logger.info("Checking patch data on server startup...")
            orchestrator.start()
        yield
        await orchestrator.shutdown()
        if http_client is not None:
            await http_client.aclose()

    patch_root = Path(patch_root)
    patch_root.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title="LoL Quiz patch sync", lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.catalog = catalog

    app.include_router(router)
    app.mount(
        "/patch-data",
        StaticFiles(directory=patch_root),
        name="patch-data",
    )
    if frontend_dir is not None and Path(frontend_dir).is_dir():
        app.mount(
            "/", StaticFiles(directory=frontend_dir, html=True), name="frontend"
        )
    app.middleware("http")(_holding_page_middleware)

    return app
