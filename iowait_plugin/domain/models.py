"""Wire model for the Scope plugin report/control protocol.

These Pydantic models serialize to the exact JSON shape Scope probes expect.
Field names follow the protocol (``Host``/``Plugins`` at the top level,
snake_case and camelCase mixed below) and empty optional fields are omitted,
so responses must be dumped with ``by_alias=True, exclude_none=True``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Sample(_WireModel):
    """Single metric observation."""

    date: datetime
    value: float


class Metric(_WireModel):
    """Metric samples with their display range."""

    samples: Optional[List[Sample]] = None
    min: float
    max: float


class ControlData(_WireModel):
    """Current liveness of a control."""

    dead: bool


class ControlEntry(_WireModel):
    """Timestamped liveness of a control on a node."""

    timestamp: datetime
    value: ControlData


class Node(_WireModel):
    """Topology node with its metrics and control liveness."""

    metrics: Dict[str, Metric]
    latest_controls: Optional[Dict[str, ControlEntry]] = Field(
        default=None, alias="latestControls"
    )


class MetricTemplate(_WireModel):
    """How Scope should render a metric."""

    id: str
    label: Optional[str] = None
    format: Optional[str] = None
    priority: Optional[float] = None


class Control(_WireModel):
    """Control descriptor shown by Scope."""

    id: str
    human: str
    icon: str
    rank: int


class Topology(_WireModel):
    """Host topology contributed by the plugin."""

    nodes: Dict[str, Node]
    metric_templates: Dict[str, MetricTemplate]
    controls: Dict[str, Control]


class PluginSpec(_WireModel):
    """Static plugin self-description."""

    id: str
    label: str
    description: Optional[str] = None
    interfaces: List[str]
    api_version: Optional[str] = None


class Report(_WireModel):
    """Unit returned from every report request."""

    host: Topology = Field(alias="Host")
    plugins: List[PluginSpec] = Field(alias="Plugins")


class ShortcutResponse(_WireModel):
    """Control response carrying the post-toggle report."""

    shortcut_report: Optional[Report] = Field(default=None, alias="shortcutReport")


class ControlRequest(BaseModel):
    """Control invocation sent by Scope.

    Only the protocol keys are read, matched case-insensitively (``NodeID``,
    ``nodeId`` and ``nodeid`` are all accepted; ``node_id`` is not). Python
    callers construct requests with the same names, e.g.
    ``ControlRequest(NodeID=..., Control=...)``. Missing keys default to
    the empty string and fail node/control validation later rather than
    parsing.
    """

    model_config = ConfigDict(strict=True)

    node_id: str = Field(default="", alias="NodeID")
    control: str = Field(default="", alias="Control")

    @model_validator(mode="before")
    @classmethod
    def _fold_key_case(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        canonical = {"nodeid": "NodeID", "control": "Control"}
        # unknown keys are ignored
        folded: Dict[str, Any] = {}
        for key, value in data.items():
            name = canonical.get(str(key).lower())
            if name is not None:
                folded[name] = value
        return folded
