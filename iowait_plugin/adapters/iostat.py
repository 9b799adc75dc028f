"""``iostat -c`` sampler.

Runs iostat once per call and reads one column from the CPU row. Typical
output::

    Linux 4.2.0-25-generic (a109563eab38)	04/01/16	_x86_64_	(4 CPU)

    avg-cpu:  %user   %nice %system %iowait  %steal   %idle
               2.37    0.00    1.58    0.01    0.00   96.04

No retries and no caching: a failed invocation surfaces to the caller as-is.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import List, Optional, Sequence

from ..domain.errors import (
    CommandFailed,
    FieldIndexOutOfRange,
    MalformedOutput,
    ParseError,
)

logger = logging.getLogger(__name__)

DATA_LINE = 3
FIELD_COUNT = 6


def parse_cpu_row(output: str) -> List[str]:
    """Return the whitespace-separated fields of the CPU data row.

    Raises
    ------
    MalformedOutput
        If there are fewer than four lines or the row does not hold exactly
        six fields.
    """
    lines = output.split("\n")
    if len(lines) < DATA_LINE + 1:
        raise MalformedOutput(f"iowait: unexpected output: {output!r}")
    values = lines[DATA_LINE].split()
    if len(values) != FIELD_COUNT:
        raise MalformedOutput(f"iowait: unexpected output: {output!r}")
    return values


def select_field(values: Sequence[str], field: int) -> float:
    """Parse the value at ``field`` as a float percentage."""
    if field < 0 or field >= len(values):
        raise FieldIndexOutOfRange(f"invalid iostat field index {field}")
    raw = values[field]
    try:
        value = float(raw)
    except ValueError as exc:
        raise ParseError(f"iowait: cannot parse {raw!r} as a number") from exc
    if not math.isfinite(value):
        raise ParseError(f"iowait: non-finite value {raw!r}")
    return value


class IostatSampler:
    """Sampler backed by a subprocess producing ``iostat -c`` output.

    Parameters
    ----------
    command: Optional[Sequence[str]]
        Executable and arguments. Defaults to ``["iostat", "-c"]``.
    """

    def __init__(self, command: Optional[Sequence[str]] = None) -> None:
        self._command = list(command or ["iostat", "-c"])

    @property
    def command(self) -> List[str]:
        return list(self._command)

    async def read_output(self) -> str:
        """Run the command to completion and return its stdout."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CommandFailed(f"iowait: {exc}") from exc
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise CommandFailed(
                f"iowait: {self._command[0]} exited with status {proc.returncode}"
                + (f": {detail}" if detail else "")
            )
        return stdout.decode("utf-8", errors="replace")

    async def measure(self, field: int) -> float:
        output = await self.read_output()
        value = select_field(parse_cpu_row(output), field)
        logger.debug("sampler.measured", extra={"field": field, "value": value})
        return value
