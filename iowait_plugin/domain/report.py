"""Report construction and control validation.

Both functions are pure apart from the sampler call: given the same mode and
sampler result they build the same topology. Locking is the caller's job
(see :class:`iowait_plugin.server.plugin.IowaitPlugin`).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict

from .. import __api_version__
from ..adapters import MetricSampler
from .errors import ControlMismatch, NodeMismatch
from .mode import Mode, control_states, live_control, spec_for
from .models import (
    Control,
    ControlData,
    ControlEntry,
    ControlRequest,
    Metric,
    MetricTemplate,
    Node,
    PluginSpec,
    Report,
    Sample,
    Topology,
)

HOST_NODE_SUFFIX = "<host>"
METRIC_FORMAT = "percent"
METRIC_PRIORITY = 0.1
METRIC_MIN = 0.0
METRIC_MAX = 100.0

PLUGIN_SPEC = PluginSpec(
    id="iowait",
    label="iowait",
    description="Adds a graph of CPU IO Wait to hosts",
    interfaces=["reporter", "controller"],
    api_version=__api_version__,
)


def topology_host(host_id: str) -> str:
    """Return the Scope node id of the host topology node for ``host_id``."""
    return f"{host_id};{HOST_NODE_SUFFIX}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _metrics(mode: Mode, sampler: MetricSampler) -> Dict[str, Metric]:
    spec = spec_for(mode)
    value = await sampler.measure(spec.field)
    return {
        spec.metric_id: Metric(
            samples=[Sample(date=_now(), value=value)],
            min=METRIC_MIN,
            max=METRIC_MAX,
        )
    }


def _latest_controls(mode: Mode) -> Dict[str, ControlEntry]:
    ts = _now()
    return {
        s.descriptor.id: ControlEntry(timestamp=ts, value=ControlData(dead=s.dead))
        for s in control_states(mode)
    }


def _metric_templates(mode: Mode) -> Dict[str, MetricTemplate]:
    spec = spec_for(mode)
    return {
        spec.metric_id: MetricTemplate(
            id=spec.metric_id,
            label=spec.label,
            format=METRIC_FORMAT,
            priority=METRIC_PRIORITY,
        )
    }


def _controls(mode: Mode) -> Dict[str, Control]:
    return {
        s.descriptor.id: Control(
            id=s.descriptor.id,
            human=s.descriptor.human,
            icon=s.descriptor.icon,
            rank=s.descriptor.rank,
        )
        for s in control_states(mode)
    }


async def build_report(mode: Mode, host_id: str, sampler: MetricSampler) -> Report:
    """Build the full report for ``mode``.

    Raises
    ------
    MetricUnavailable
        If the sampler fails. No partial report is produced.
    """
    metrics = await _metrics(mode, sampler)
    return Report(
        host=Topology(
            nodes={
                topology_host(host_id): Node(
                    metrics=metrics,
                    latest_controls=_latest_controls(mode),
                )
            },
            metric_templates=_metric_templates(mode),
            controls=_controls(mode),
        ),
        plugins=[PLUGIN_SPEC],
    )


def validate_control(mode: Mode, host_id: str, request: ControlRequest) -> None:
    """Check that ``request`` targets this host and the currently live control.

    Raises
    ------
    NodeMismatch
        If ``request.node_id`` is not this host's topology node id.
    ControlMismatch
        If ``request.control`` is not the control offered under ``mode``.
    """
    expected_node = topology_host(host_id)
    if request.node_id != expected_node:
        raise NodeMismatch(expected_node, request.node_id)
    expected_control = live_control(mode).id
    if request.control != expected_control:
        raise ControlMismatch(expected_control, request.control)
