"""Mode state machine and the table that drives metric naming and controls.

The plugin graphs exactly one of two mutually exclusive CPU metrics. Every
mode-dependent value (metric id and label, iostat field, which control is
offered) is read from :data:`MODE_TABLE` so report and control paths can
never disagree about what a mode means.

Liveness is defined for two modes only: while in a mode, the control that
switches to the other mode is live and the one that switches to the current
mode is dead.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

# Column positions in the ``iostat -c`` data row:
# %user %nice %system %iowait %steal %idle
IOWAIT_FIELD = 3
IDLE_FIELD = 5

SWITCH_TO_IDLE = "switchToIdle"
SWITCH_TO_IOWAIT = "switchToIOWait"


class Mode(str, Enum):
    """Active metric selector."""

    IDLE = "idle"
    IOWAIT = "iowait"

    def toggle(self) -> "Mode":
        """Return the other mode."""
        return Mode.IOWAIT if self is Mode.IDLE else Mode.IDLE


@dataclass(frozen=True)
class ModeSpec:
    """Static facts about one mode."""

    metric_id: str
    label: str
    field: int
    live_control: str


@dataclass(frozen=True)
class ControlDescriptor:
    """Control advertised to Scope."""

    id: str
    human: str
    icon: str
    rank: int = 1


@dataclass(frozen=True)
class ControlState:
    """Liveness of a control descriptor under a given mode."""

    descriptor: ControlDescriptor
    dead: bool


MODE_TABLE: Dict[Mode, ModeSpec] = {
    Mode.IOWAIT: ModeSpec("iowait", "IO Wait", IOWAIT_FIELD, SWITCH_TO_IDLE),
    Mode.IDLE: ModeSpec("idle", "Idle", IDLE_FIELD, SWITCH_TO_IOWAIT),
}

CONTROLS: List[ControlDescriptor] = [
    ControlDescriptor(SWITCH_TO_IDLE, "Switch to idle", "fa-gears"),
    ControlDescriptor(SWITCH_TO_IOWAIT, "Switch to IO wait", "fa-clock-o"),
]

INITIAL_MODE = Mode.IDLE


def spec_for(mode: Mode) -> ModeSpec:
    """Return the table entry for ``mode``."""
    return MODE_TABLE[mode]


def control_states(mode: Mode) -> List[ControlState]:
    """Return every control with its liveness under ``mode``."""
    live = spec_for(mode).live_control
    return [ControlState(c, dead=c.id != live) for c in CONTROLS]


def live_control(mode: Mode) -> ControlDescriptor:
    """Return the single control that may be invoked under ``mode``."""
    live = [s.descriptor for s in control_states(mode) if not s.dead]
    if len(live) != 1:
        raise RuntimeError(f"expected exactly one live control, got {len(live)}")
    return live[0]
