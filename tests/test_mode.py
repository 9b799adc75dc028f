"""Tests for the mode state machine and control liveness."""

from __future__ import annotations

import itertools

import pytest

from iowait_plugin.domain.mode import (
    CONTROLS,
    INITIAL_MODE,
    MODE_TABLE,
    SWITCH_TO_IDLE,
    SWITCH_TO_IOWAIT,
    Mode,
    control_states,
    live_control,
    spec_for,
)


def test_initial_mode_is_idle():
    assert INITIAL_MODE is Mode.IDLE


def test_toggle_flips_between_modes():
    assert Mode.IDLE.toggle() is Mode.IOWAIT
    assert Mode.IOWAIT.toggle() is Mode.IDLE


def test_mode_table_is_exhaustive():
    assert set(MODE_TABLE) == set(Mode)
    assert spec_for(Mode.IOWAIT).metric_id == "iowait"
    assert spec_for(Mode.IOWAIT).label == "IO Wait"
    assert spec_for(Mode.IDLE).metric_id == "idle"
    assert spec_for(Mode.IDLE).label == "Idle"


def test_control_descriptors():
    assert [(c.id, c.human, c.icon, c.rank) for c in CONTROLS] == [
        (SWITCH_TO_IDLE, "Switch to idle", "fa-gears", 1),
        (SWITCH_TO_IOWAIT, "Switch to IO wait", "fa-clock-o", 1),
    ]


@pytest.mark.parametrize(
    "mode, live, dead",
    [
        (Mode.IDLE, SWITCH_TO_IOWAIT, SWITCH_TO_IDLE),
        (Mode.IOWAIT, SWITCH_TO_IDLE, SWITCH_TO_IOWAIT),
    ],
)
def test_live_control_offers_the_other_mode(mode, live, dead):
    states = {s.descriptor.id: s.dead for s in control_states(mode)}
    assert states == {live: False, dead: True}
    assert live_control(mode).id == live


def test_exactly_one_live_control_for_any_toggle_sequence():
    mode = INITIAL_MODE
    for _ in itertools.repeat(None, 7):
        live = [s for s in control_states(mode) if not s.dead]
        assert len(live) == 1
        expected = SWITCH_TO_IOWAIT if mode is Mode.IDLE else SWITCH_TO_IDLE
        assert live[0].descriptor.id == expected == live_control(mode).id
        mode = mode.toggle()
