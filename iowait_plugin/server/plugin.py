"""Plugin actor owning the mode state.

All access to the mode goes through :meth:`IowaitPlugin.report` and
:meth:`IowaitPlugin.control`. Both hold the same lock for their whole body,
sampler subprocess included, so a report never observes a half-applied
toggle and two toggles never interleave. ``asyncio.Lock`` wakes waiters in
FIFO order, so queued requests are served in arrival order.
"""

from __future__ import annotations

import asyncio
import logging

from ..adapters import MetricSampler
from ..domain.errors import ControlValidationError, MetricUnavailable
from ..domain.mode import INITIAL_MODE, IOWAIT_FIELD, Mode
from ..domain.models import ControlRequest, Report, ShortcutResponse
from ..domain.report import build_report, topology_host, validate_control
from ..utils.correlation import get_request_id

logger = logging.getLogger(__name__)


class IowaitPlugin:
    """Scope reporter/controller for one host.

    Parameters
    ----------
    host_id: str
        Host identity reported to Scope; fixed for the lifetime of the object.
    sampler: MetricSampler
        Source of CPU utilisation values.
    """

    def __init__(self, host_id: str, sampler: MetricSampler) -> None:
        self._host_id = host_id
        self._sampler = sampler
        self._mode: Mode = INITIAL_MODE
        self._lock = asyncio.Lock()

    @property
    def host_id(self) -> str:
        return self._host_id

    @property
    def node_id(self) -> str:
        return topology_host(self._host_id)

    @property
    def mode(self) -> Mode:
        return self._mode

    async def self_check(self) -> float:
        """Sample IO wait once; raises if the sampler is unusable."""
        value = await self._sampler.measure(IOWAIT_FIELD)
        logger.info("plugin.self_check.ok", extra={"iowait": value})
        return value

    async def report(self) -> Report:
        """Build a report for the current mode.

        Raises
        ------
        MetricUnavailable
            If the sampler fails.
        """
        async with self._lock:
            try:
                return await build_report(self._mode, self._host_id, self._sampler)
            except MetricUnavailable as exc:
                logger.error(
                    "plugin.report.failed",
                    extra={"req_id": get_request_id(), "error": str(exc)},
                )
                raise

    async def control(self, request: ControlRequest) -> ShortcutResponse:
        """Apply a control request and return the post-toggle report.

        The toggle is committed before the report is rebuilt; if the rebuild
        fails the new mode stays in place and the error propagates.

        Raises
        ------
        ControlValidationError
            If the request targets another node or a dead control. The mode
            is left untouched.
        MetricUnavailable
            If the post-toggle report cannot be built.
        """
        async with self._lock:
            try:
                validate_control(self._mode, self._host_id, request)
            except ControlValidationError as exc:
                logger.warning(
                    "plugin.control.rejected",
                    extra={"req_id": get_request_id(), "reason": str(exc)},
                )
                raise
            previous, self._mode = self._mode, self._mode.toggle()
            logger.info(
                "plugin.control.applied",
                extra={
                    "req_id": get_request_id(),
                    "control": request.control,
                    "from": previous.value,
                    "to": self._mode.value,
                },
            )
            try:
                rpt = await build_report(self._mode, self._host_id, self._sampler)
            except MetricUnavailable as exc:
                logger.error(
                    "plugin.control.report_failed",
                    extra={"req_id": get_request_id(), "error": str(exc)},
                )
                raise
            return ShortcutResponse(shortcut_report=rpt)
