"""Exception hierarchy for sampling, control validation and serialization.

Sampler failures all derive from :class:`MetricUnavailable` so report
construction can propagate them unchanged while callers still catch a single
type. Control validation failures derive from
:class:`ControlValidationError` and are client errors; they never mutate
plugin state.
"""

from __future__ import annotations


class PluginError(Exception):
    """Base class for all plugin errors."""


class MetricUnavailable(PluginError):
    """The current metric value could not be obtained."""


class CommandFailed(MetricUnavailable):
    """The measurement command could not be run or exited non-zero."""


class MalformedOutput(MetricUnavailable):
    """The measurement command produced output of an unexpected shape."""


class FieldIndexOutOfRange(MetricUnavailable):
    """The requested field position does not exist in the parsed line."""


class ParseError(MetricUnavailable):
    """The selected field is not a floating-point number."""


class ControlValidationError(PluginError):
    """A control request does not apply to this node in its current state."""


class NodeMismatch(ControlValidationError):
    """The request targets a different topology node."""

    def __init__(self, expected: str, got: str) -> None:
        super().__init__(f"Bad nodeID, expected {expected!r}, got {got!r}")
        self.expected = expected
        self.got = got


class ControlMismatch(ControlValidationError):
    """The requested control is not the currently live one."""

    def __init__(self, expected: str, got: str) -> None:
        super().__init__(f"Bad control, expected {expected!r}, got {got!r}")
        self.expected = expected
        self.got = got


class SerializationError(PluginError):
    """A response object could not be encoded to JSON."""
