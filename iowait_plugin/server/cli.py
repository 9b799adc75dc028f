"""Command-line interface to run the Scope IO-wait plugin.

The process checks that it can sample IO wait, optionally probes the storage
metrics endpoint, recreates the socket directory with restrictive
permissions, and serves the plugin protocol over the Unix socket until it is
interrupted. The socket directory is removed on every exit path.

Usage
-----
    iowait-plugin --socket-path /var/run/scope/plugins/iowait/iowait.sock
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import shutil
import socket
import sys
from pathlib import Path
from typing import List, Optional, get_args

import httpx
import uvicorn
from pydantic import ValidationError

from ..adapters.cortex import CortexClient, probe_storage_iops
from ..config.models import LogLevel, PluginSettings
from ..domain.errors import MetricUnavailable
from ..observability import setup_logging
from .http import build_plugin, create_app
from .plugin import IowaitPlugin

logger = logging.getLogger(__name__)

SOCKET_DIR_MODE = 0o700


def setup_socket(socket_path: str) -> socket.socket:
    """Bind a Unix stream socket at ``socket_path``.

    The parent directory is removed and recreated with mode 0700 so only the
    plugin's user (and root, i.e. the Scope probe) can reach the socket.

    Raises
    ------
    OSError
        If the directory cannot be created or the socket cannot be bound.
    """
    sock_dir = Path(socket_path).parent
    shutil.rmtree(sock_dir, ignore_errors=True)
    sock_dir.mkdir(mode=SOCKET_DIR_MODE, parents=True, exist_ok=True)
    os.chmod(sock_dir, SOCKET_DIR_MODE)
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.bind(socket_path)
    except OSError:
        sock.close()
        raise
    logger.info("cli.listening", extra={"socket": f"unix://{socket_path}"})
    return sock


def cleanup_socket(socket_path: str) -> None:
    """Remove the socket directory created by :func:`setup_socket`."""
    shutil.rmtree(Path(socket_path).parent, ignore_errors=True)
    logger.debug("cli.socket_removed", extra={"socket": socket_path})


async def startup_checks(plugin: IowaitPlugin, settings: PluginSettings) -> None:
    """Run the optional storage probe and the sampler self-check.

    Raises
    ------
    httpx.HTTPError, pydantic.ValidationError
        If the configured storage probe fails.
    MetricUnavailable
        If IO wait cannot be sampled.
    """
    if settings.cortex_url:
        await probe_storage_iops(
            CortexClient(settings.cortex_url, settings.cortex_timeout_seconds),
            settings.cortex_query,
        )
    await plugin.self_check()


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scope IO-wait plugin")
    parser.add_argument(
        "--socket-path",
        dest="socket_path",
        help="Unix socket path (overrides IOWAIT_PLUGIN_SOCKET_PATH)",
    )
    parser.add_argument(
        "--hostname",
        help="Host identity reported to Scope (defaults to the machine hostname)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=list(get_args(LogLevel)),
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (once sets DEBUG)",
    )
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> PluginSettings:
    """Load environment settings and apply command-line overrides."""
    settings = PluginSettings()
    overrides = {}
    if args.socket_path:
        overrides["socket_path"] = args.socket_path
    if args.hostname:
        overrides["hostname"] = args.hostname
    if args.log_level:
        overrides["log_level"] = args.log_level
    elif args.verbose > 0:
        overrides["log_level"] = "DEBUG"
    return settings.model_copy(update=overrides)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint; returns the process exit status."""
    args = _parse_args(argv)
    try:
        settings = load_settings(args)
    except ValidationError as exc:
        setup_logging("INFO")
        logger.error("cli.settings_invalid", extra={"error": str(exc)})
        return 1
    setup_logging(settings.log_level)

    plugin = build_plugin(settings)
    logger.info("cli.startup", extra={"host_id": plugin.host_id})

    try:
        asyncio.run(startup_checks(plugin, settings))
    except (MetricUnavailable, httpx.HTTPError, ValidationError) as exc:
        logger.error("cli.startup_check_failed", extra={"error": str(exc)})
        return 1

    try:
        sock = setup_socket(settings.socket_path)
    except OSError as exc:
        logger.error(
            "cli.socket_failed",
            extra={"socket": settings.socket_path, "error": str(exc)},
        )
        cleanup_socket(settings.socket_path)
        return 1

    try:
        # uvicorn installs SIGINT/SIGTERM handlers and returns after a
        # graceful shutdown, so cleanup below also covers signal exits
        uvicorn.run(
            create_app(plugin=plugin),
            fd=sock.fileno(),
            log_level=settings.log_level.lower(),
            access_log=False,
        )
    finally:
        sock.close()
        cleanup_socket(settings.socket_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
