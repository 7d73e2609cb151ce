"""
Built-in informational routes.

These are served before any script lookup, for every method the script
route accepts, so scripts named ``status``, ``health`` or ``list`` are
always shadowed.
"""

from fastapi import APIRouter, Request, Response

from . import __version__, responses
from .models import ScriptListResponse, StatusResponse

router = APIRouter(tags=["Built-in"])

# Also used by the script route; built-ins must accept every method it does
ROUTE_METHODS = ["GET", "POST"]


@router.api_route("/", methods=ROUTE_METHODS, summary="Agent status")
@router.api_route("/status", methods=ROUTE_METHODS, summary="Agent status")
async def status(request: Request) -> Response:
    """
    Service name, version, uptime, counters and installed scripts.
    """
    state = request.app.state
    snap = state.stats.snapshot()
    return responses.json(
        StatusResponse(
            service=state.settings.service_name,
            version=__version__,
            uptime_seconds=snap.uptime_seconds,
            requests=snap.requests,
            scripts_run=snap.scripts_run,
            available_scripts=state.catalog.list_names(),
            scripts_dir=state.settings.scripts_dir,
        )
    )


@router.api_route("/health", methods=ROUTE_METHODS, summary="Liveness check")
async def health() -> Response:
    return responses.ok("OK")


@router.api_route("/list", methods=ROUTE_METHODS, summary="Installed scripts")
@router.api_route("/list/", methods=ROUTE_METHODS, include_in_schema=False)
async def list_scripts(request: Request) -> Response:
    return responses.json(ScriptListResponse(scripts=request.app.state.catalog.list_names()))
