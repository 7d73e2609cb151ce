"""
Milan - HTTP-triggered script executor.

Receives HTTP requests from allowed IPs and runs local scripts:

    GET /hello/world   ->   <scripts_dir>/hello.py "world"

The script's combined stdout/stderr becomes the plain-text response body.
Request handling per call:

1. count the request and check the caller IP (403 before any routing)
2. serve a built-in route (status, health, list), or
3. resolve the path to a script, run it with a timeout, map the outcome
4. anything unexpected becomes a 500; nothing reaches the server loop
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request, Response

from . import __version__, responses
from .builtin import ROUTE_METHODS, router as builtin_router
from .config import Settings, ensure_scripts_dir, load_settings
from .errors import AccessDenied, RouteError
from .resolver import resolve_path
from .runner import ScriptRunner, Success
from .scripts_dir import ScriptCatalog
from .security import IPAllowList, client_ip, enforce_allow_list
from .stats import ServerStats

logger = logging.getLogger("milan.dispatch")


def _raw_path(request: Request) -> str:
    """
    Request path before percent-decoding.

    Needed so that ``%2F`` in an argument is not mistaken for a separator.
    """
    raw = request.scope.get("raw_path")
    if not raw:
        return request.url.path
    # Some clients put the query string into raw_path
    return raw.decode("utf-8", errors="replace").split("?", 1)[0]


async def dispatch_script(request: Request) -> Response:
    """
    Resolve and run the script named by the request path.

    The allow-list has already been applied by the app middleware.
    """
    state = request.app.state
    ip = client_ip(request)

    try:
        script = resolve_path(_raw_path(request), state.catalog)

        logger.info("%s -> %s(%s)", ip, script.name, script.argument)
        result = await state.runner.run(script.path, script.argument)
        state.stats.record_script_run()

        if isinstance(result, Success):
            logger.info("%s completed (%dms)", script.name, result.duration_ms)
        else:
            logger.warning("%s failed: %s", script.name, result.error)
        return responses.from_result(result)
    except RouteError as exc:
        logger.warning("%s: %s", exc.message, request.url.path)
        return responses.from_error(exc)
    except Exception as exc:
        logger.exception("Execution failed: %s", exc)
        return responses.internal_error(exc)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the agent application.

    Settings, the allow-list, the script catalog, the runner and the
    counters are created once here and stored on ``app.state``.

    Raises:
        ConfigError: Invalid allow-list entry or unusable scripts directory
    """
    settings = settings or load_settings()
    scripts_path = ensure_scripts_dir(settings)

    app = FastAPI(
        title="Milan",
        description="Runs local scripts on HTTP request from allowed IPs.",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.settings = settings
    app.state.allow_list = IPAllowList(settings.allowed_ips)
    app.state.catalog = ScriptCatalog(
        scripts_path,
        settings.script_extension,
        require_executable=not settings.interpreter,
    )
    app.state.runner = ScriptRunner(
        timeout=settings.timeout_seconds,
        interpreter=settings.interpreter,
    )
    app.state.stats = ServerStats()

    @app.middleware("http")
    async def guard_and_answer(request: Request, call_next):
        """
        Outermost layer: count and authorize every request before routing,
        then turn anything unhandled into a 500 instead of a dropped connection.
        """
        try:
            enforce_allow_list(request)
        except AccessDenied as exc:
            return responses.from_error(exc)

        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s", request.url.path)
            return responses.internal_error(exc)

    app.include_router(builtin_router)
    app.add_api_route(
        "/{script_path:path}",
        dispatch_script,
        methods=ROUTE_METHODS,
        include_in_schema=False,
    )

    return app
