"""Tests for the plugin actor: mode transitions, rejection and serialization."""

from __future__ import annotations

import asyncio
from typing import List

import pytest

from iowait_plugin.domain.errors import (
    ControlMismatch,
    MalformedOutput,
    NodeMismatch,
)
from iowait_plugin.domain.mode import Mode
from iowait_plugin.domain.models import ControlRequest, Report
from iowait_plugin.server.plugin import IowaitPlugin
from tests.fakes import HOST_ID, NODE_ID


def _mode_fields(rpt: Report):
    node = rpt.host.nodes[NODE_ID]
    return (
        list(node.metrics),
        list(rpt.host.metric_templates),
        {k: v.value.dead for k, v in node.latest_controls.items()},
    )


@pytest.mark.asyncio
async def test_report_is_stable_without_control(plugin, sampler):
    first = await plugin.report()
    sampler.output = sampler.output.replace("72.30", "65.00")
    second = await plugin.report()

    assert _mode_fields(first) == _mode_fields(second)
    s1 = first.host.nodes[NODE_ID].metrics["idle"].samples[0]
    s2 = second.host.nodes[NODE_ID].metrics["idle"].samples[0]
    assert s1.value == pytest.approx(72.3)
    assert s2.value == pytest.approx(65.0)
    assert s2.date >= s1.date
    assert plugin.mode is Mode.IDLE


@pytest.mark.asyncio
async def test_control_round_trip(plugin):
    resp = await plugin.control(ControlRequest(NodeID=NODE_ID, Control="switchToIOWait"))
    assert plugin.mode is Mode.IOWAIT
    assert list(resp.shortcut_report.host.metric_templates) == ["iowait"]

    resp = await plugin.control(ControlRequest(NodeID=NODE_ID, Control="switchToIdle"))
    assert plugin.mode is Mode.IDLE
    assert list(resp.shortcut_report.host.metric_templates) == ["idle"]


@pytest.mark.asyncio
@pytest.mark.parametrize("control", ["switchToIOWait", "switchToIdle", ""])
async def test_wrong_node_never_mutates(plugin, control):
    with pytest.raises(NodeMismatch):
        await plugin.control(ControlRequest(NodeID="elsewhere;<host>", Control=control))
    assert plugin.mode is Mode.IDLE


@pytest.mark.asyncio
async def test_dead_control_is_rejected_without_mutation(plugin, sampler):
    with pytest.raises(ControlMismatch):
        await plugin.control(ControlRequest(NodeID=NODE_ID, Control="switchToIdle"))
    assert plugin.mode is Mode.IDLE
    assert sampler.calls == []


@pytest.mark.asyncio
async def test_failed_rebuild_keeps_toggle(plugin, sampler):
    sampler.error = MalformedOutput("iowait: unexpected output: ''")
    with pytest.raises(MalformedOutput):
        await plugin.control(ControlRequest(NodeID=NODE_ID, Control="switchToIOWait"))
    assert plugin.mode is Mode.IOWAIT


@pytest.mark.asyncio
async def test_self_check_samples_iowait(plugin, sampler):
    assert await plugin.self_check() == pytest.approx(0.01)
    assert sampler.calls == [3]


def test_identity(plugin):
    assert plugin.host_id == HOST_ID
    assert plugin.node_id == NODE_ID


class _SlowSampler:
    """Sampler that yields to the loop and records overlapping calls."""

    def __init__(self) -> None:
        self.active = 0
        self.max_active = 0
        self.fields: List[int] = []

    async def measure(self, field: int) -> float:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0.01)
            self.fields.append(field)
            return float(field)
        finally:
            self.active -= 1


@pytest.mark.asyncio
async def test_requests_are_serialized_in_arrival_order():
    sampler = _SlowSampler()
    plugin = IowaitPlugin(HOST_ID, sampler)
    toggle = ControlRequest(NodeID=NODE_ID, Control="switchToIOWait")

    before, shortcut, after, rejected = await asyncio.gather(
        plugin.report(),
        plugin.control(toggle),
        plugin.report(),
        plugin.control(toggle),
        return_exceptions=True,
    )

    assert sampler.max_active == 1
    assert list(before.host.metric_templates) == ["idle"]
    assert list(shortcut.shortcut_report.host.metric_templates) == ["iowait"]
    assert list(after.host.metric_templates) == ["iowait"]
    assert isinstance(rejected, ControlMismatch)
    assert sampler.fields == [5, 3, 3]
    assert plugin.mode is Mode.IOWAIT
