"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so imports like
``import iowait_plugin`` resolve correctly regardless of the working
directory pytest chooses.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()

from tests.fakes import HOST_ID, CannedSampler  # noqa: E402


@pytest.fixture
def sampler() -> CannedSampler:
    """Sampler reporting 0.01 %iowait and 72.3 %idle."""
    return CannedSampler()


@pytest.fixture
def plugin(sampler):
    """Plugin actor for ``testhost`` backed by the canned sampler."""
    from iowait_plugin.server.plugin import IowaitPlugin

    return IowaitPlugin(HOST_ID, sampler)


@pytest.fixture
def client(plugin):
    """FastAPI TestClient serving the plugin actor."""
    from fastapi.testclient import TestClient

    from iowait_plugin.server.http import create_app

    with TestClient(create_app(plugin=plugin)) as c:
        yield c
