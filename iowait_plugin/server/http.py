"""HTTP transport for the Scope plugin protocol via FastAPI.

Two routes are exposed on the plugin socket:

- ``GET /report`` returns the current report.
- ``POST /control`` applies a control and returns ``{"shortcutReport": ...}``.

Error bodies follow the probe's expectations rather than a JSON envelope:
report failures are ``500`` with the error text as ``text/plain``, control
validation failures are ``400`` with an empty body.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError
from starlette.middleware.base import BaseHTTPMiddleware

from .. import __version__
from ..adapters.iostat import IostatSampler
from ..config.models import PluginSettings
from ..domain.errors import (
    ControlValidationError,
    MetricUnavailable,
    SerializationError,
)
from ..domain.models import ControlRequest
from ..observability import setup_logging
from ..utils.correlation import set_request_id
from .plugin import IowaitPlugin

logger = logging.getLogger(__name__)

__all__ = ["create_app", "build_plugin", "encode"]


class RequestLoggingMiddleware(
    BaseHTTPMiddleware
):  # pylint: disable=too-few-public-methods
    """Log every request target with its outcome and timing."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        req_id = request.headers.get("x-correlation-id") or str(uuid.uuid4())
        set_request_id(req_id)
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        logger.info(
            "http.request",
            extra={"req_id": req_id, "method": request.method, "target": target},
        )
        response = await call_next(request)
        logger.debug(
            "http.request.completed",
            extra={
                "req_id": req_id,
                "target": target,
                "status": response.status_code,
                "duration_ms": int((time.time() - start_time) * 1000),
            },
        )
        return response


def encode(model: BaseModel) -> Response:
    """Serialize a wire model into a JSON response.

    Raises
    ------
    SerializationError
        If the model cannot be encoded.
    """
    try:
        raw = model.model_dump_json(by_alias=True, exclude_none=True)
    except PydanticSerializationError as exc:
        raise SerializationError(str(exc)) from exc
    return Response(content=raw, media_type="application/json")


def build_plugin(settings: PluginSettings) -> IowaitPlugin:
    """Create the plugin actor described by ``settings``."""
    return IowaitPlugin(
        host_id=settings.host_id(),
        sampler=IostatSampler(settings.iostat_command),
    )


def _register_error_handlers(app: FastAPI) -> None:
    """Map plugin errors to protocol status codes."""

    @app.exception_handler(ControlValidationError)
    async def control_validation_handler(_request: Any, exc: Exception):
        _ = exc
        return Response(status_code=400)

    @app.exception_handler(MetricUnavailable)
    async def metric_unavailable_handler(_request: Any, exc: Exception):
        return PlainTextResponse(str(exc), status_code=500)

    @app.exception_handler(SerializationError)
    async def serialization_handler(_request: Any, exc: Exception):
        logger.error("http.serialization_failed", extra={"error": str(exc)})
        return PlainTextResponse(str(exc), status_code=500)

    # Mark handlers as intentionally used (registered via decorators)
    _ = (control_validation_handler, metric_unavailable_handler, serialization_handler)


def _register_routes(app: FastAPI, plugin: IowaitPlugin) -> None:
    """Register the reporter and controller endpoints."""

    @app.get("/report", summary="Current host report")
    async def report() -> Response:
        return encode(await plugin.report())

    @app.post("/control", summary="Apply a control")
    async def control(request: Request) -> Response:
        body = await request.body()
        try:
            xreq = ControlRequest.model_validate_json(body)
        except ValidationError as exc:
            logger.warning(
                "http.control.bad_request", extra={"error": str(exc).splitlines()[0]}
            )
            return Response(status_code=400)
        return encode(await plugin.control(xreq))

    _ = (report, control)


def create_app(
    plugin: Optional[IowaitPlugin] = None,
    settings: Optional[PluginSettings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    plugin: Optional[IowaitPlugin]
        Plugin actor to serve. Built from ``settings`` when omitted.
    settings: Optional[PluginSettings]
        Settings used when ``plugin`` is not given; loaded from the
        environment when omitted.
    """
    if plugin is None:
        settings = settings or PluginSettings()
        # Respect prior logging configuration from CLI; otherwise use env setting
        if not logging.getLogger().hasHandlers():
            setup_logging(settings.log_level)
        plugin = build_plugin(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info(
            "http.startup",
            extra={"host_id": plugin.host_id, "node_id": plugin.node_id},
        )
        try:
            yield
        finally:
            logger.info("http.shutdown", extra={"mode": plugin.mode.value})

    app = FastAPI(
        title="Scope IO-wait plugin",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.plugin = plugin
    app.add_middleware(RequestLoggingMiddleware)
    _register_error_handlers(app)
    _register_routes(app, plugin)
    return app
