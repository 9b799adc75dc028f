"""
Scope IO-wait plugin package.

This package hosts the Weave Scope reporter/controller plugin that graphs CPU
IO wait (or idle) time for the local host. See README.md for usage.
"""

from .__version__ import __api_version__, __version__

__all__ = ["__version__", "__api_version__"]
